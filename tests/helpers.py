"""Test doubles shared across test modules."""

import httpx


class RecordingBackend:
    """Completion backend that records prompts and returns a canned answer."""

    name = "recording"

    def __init__(self, answer: str = "Here is what I found.") -> None:
        self.answer = answer
        self.calls: list[list[dict]] = []

    async def complete(self, messages: list[dict]) -> str:
        self.calls.append(messages)
        return self.answer

    @property
    def system_prompt(self) -> str:
        return self.calls[-1][0]["content"]


class MemoryTokenStore:
    """In-memory stand-in for the drive_tokens table."""

    def __init__(self, token=None) -> None:
        self.tokens = {token.user_id: token} if token else {}
        self.saved = []

    async def get_drive_token(self, user_id):
        return self.tokens.get(user_id)

    async def save_drive_token(self, token) -> None:
        self.saved.append(token)
        self.tokens[token.user_id] = token


class Recorder:
    """httpx.MockTransport handler that logs requests and replays routes."""

    def __init__(self, routes) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for prefix, respond in self.routes.items():
            if str(request.url).startswith(prefix):
                return respond(request)
        return httpx.Response(404, text="no route")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def make_pdf(*literals: str, text_objects: bool = True) -> bytes:
    """Build a minimal uncompressed PDF whose page shows ``literals``."""
    shows = "\n".join(f"({lit}) Tj" for lit in literals)
    stream = f"BT /F1 12 Tf 72 712 Td\n{shows}\nET" if text_objects else shows
    return (
        "%PDF-1.4\n"
        "1 0 obj << /Type /Catalog /Pages 2 0 R >> endobj\n"
        "2 0 obj << /Type /Pages /Kids [3 0 R] /Count 1 >> endobj\n"
        "3 0 obj << /Type /Page /Parent 2 0 R /Contents 4 0 R >> endobj\n"
        f"4 0 obj << /Length {len(stream)} >>\nstream\n{stream}\nendstream\nendobj\n"
        "trailer << /Root 1 0 R >>\n%%EOF\n"
    ).encode("latin-1")


def make_scanned_pdf() -> bytes:
    """An image-only page whose only strings live in the Info dictionary."""
    stream = "q 612 0 0 792 0 0 cm /Im0 Do Q"
    return (
        "%PDF-1.4\n"
        "1 0 obj << /Type /Catalog /Pages 2 0 R >> endobj\n"
        "2 0 obj << /Type /Pages /Kids [3 0 R] /Count 1 >> endobj\n"
        "3 0 obj << /Type /Page /Parent 2 0 R /Contents 4 0 R >> endobj\n"
        f"4 0 obj << /Length {len(stream)} >>\nstream\n{stream}\nendstream\nendobj\n"
        "5 0 obj << /Producer (Canon iR-ADV C5535 PDF) /Creator (Scan to File) "
        "/Title (Quarterly report) >> endobj\n"
        "trailer << /Root 1 0 R /Info 5 0 R >>\n%%EOF\n"
    ).encode("latin-1")
