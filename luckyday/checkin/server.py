from __future__ import annotations

import html
import io
import logging
import threading
import time
from typing import Callable, List, Optional

import qrcode
import uvicorn
from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel

from luckyday.i18n import CHINESE, ENGLISH, Translator
from luckyday.models.schema import CheckInConfig, Participant

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100


class CheckInRequest(BaseModel):
    name: str
    department: Optional[str] = None


def qr_png(data: str) -> bytes:
    """PNG bytes of a QR code encoding ``data``."""
    qr = qrcode.QRCode(version=1, box_size=10, border=2)
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def generate_qr_code(url: str, path) -> None:
    with open(path, "wb") as fh:
        fh.write(qr_png(url))
    logger.info("wrote check-in QR code for %s to %s", url, path)


class CheckInRegistry:
    """Participants who checked in, with ids handed out from 1."""

    def __init__(self) -> None:
        self._participants: List[Participant] = []
        self._next_id = 1
        self._lock = threading.Lock()

    def add(self, name: str) -> Participant:
        with self._lock:
            participant = Participant(id=self._next_id, name=name)
            self._participants.append(participant)
            self._next_id += 1
        logger.info("checked in %s as #%d", name, participant.id)
        return participant

    def participants(self) -> List[Participant]:
        with self._lock:
            return list(self._participants)

    def count(self) -> int:
        with self._lock:
            return len(self._participants)


class RateLimiter:
    """Token bucket: ``rate`` tokens per second, at most ``burst`` stored."""

    def __init__(self, rate: float = 10.0, burst: int = 20, clock: Callable[[], float] = time.monotonic) -> None:
        self._rate = rate
        self._burst = burst
        self._clock = clock
        self._tokens = float(burst)
        self._last = clock()
        self._lock = threading.Lock()

    def allow(self) -> bool:
        with self._lock:
            now = self._clock()
            self._tokens = min(self._burst, self._tokens + (now - self._last) * self._rate)
            self._last = now
            if self._tokens >= 1:
                self._tokens -= 1
                return True
            return False


CHECKIN_PAGE = """<!DOCTYPE html>
<html lang="{lang}">
<head><meta charset="utf-8"><meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title}</title></head>
<body>
<h1>{title}</h1>
<form id="checkin">
  <input name="name" maxlength="{max_length}" placeholder="{name_placeholder}" required>
  <input name="department" placeholder="{dept_placeholder}">
  <button type="submit">{submit}</button>
</form>
<p id="result"></p>
<script>
document.getElementById("checkin").addEventListener("submit", async (e) => {{
  e.preventDefault();
  const data = Object.fromEntries(new FormData(e.target));
  const res = await fetch("/checkin", {{method: "POST", headers: {{"Content-Type": "application/json"}}, body: JSON.stringify(data)}});
  const body = await res.json();
  document.getElementById("result").textContent = res.ok ? "#" + body.id : JSON.stringify(body.detail);
}});
</script>
</body>
</html>"""


def checkin_url(port: int, language: str = CHINESE) -> str:
    lang = ENGLISH if language == ENGLISH else CHINESE
    return f"http://localhost:{port}/?lang={lang}"


def create_app(
    registry: CheckInRegistry,
    limiter: Optional[RateLimiter] = None,
    translator: Optional[Translator] = None,
    url: Optional[str] = None,
) -> FastAPI:
    limiter = limiter or RateLimiter()
    default_language = translator.language if translator else CHINESE
    url = url or checkin_url(CheckInConfig().port, default_language)
    router = APIRouter()

    @router.get("/", response_class=HTMLResponse)
    def checkin_page(lang: Optional[str] = None):
        t = Translator(lang or default_language)
        return CHECKIN_PAGE.format(
            lang=t.language,
            title=html.escape(t.t("qr.title")),
            name_placeholder=html.escape(t.t("qr.name_placeholder")),
            dept_placeholder=html.escape(t.t("qr.dept_placeholder")),
            submit=html.escape(t.t("qr.submit")),
            max_length=MAX_NAME_LENGTH,
        )

    @router.post("/checkin")
    def checkin(payload: CheckInRequest):
        name = payload.name.strip()
        if not name:
            raise HTTPException(status_code=400, detail="Name is required")
        if len(name) > MAX_NAME_LENGTH:
            raise HTTPException(status_code=400, detail="Name is too long")
        participant = registry.add(name)
        return {"success": True, "message": "Check-in successful", "id": participant.id}

    @router.get("/count")
    def count():
        return {"count": registry.count()}

    @router.get("/qrcode")
    def qr_image():
        return Response(content=qr_png(url), media_type="image/png")

    app = FastAPI(title="Lucky Day Check-in", docs_url=None, redoc_url=None)
    app.include_router(router)

    # throttled before the body is parsed, so malformed posts spend tokens too
    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        if request.method == "POST" and request.url.path == "/checkin" and not limiter.allow():
            return JSONResponse(
                status_code=429,
                content={"detail": "Too many requests, please try again later", "type": "http_error"},
            )
        return await call_next(request)

    @app.exception_handler(HTTPException)
    def http_exception_handler(_: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "type": "http_error"})

    @app.exception_handler(RequestValidationError)
    def validation_exception_handler(_: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={"detail": exc.errors(), "message": "Validation error", "type": "validation_error"},
        )

    return app


class CheckInServer:
    """Runs the check-in app with uvicorn on a background thread."""

    def __init__(self, config: Optional[CheckInConfig] = None, translator: Optional[Translator] = None) -> None:
        self.config = config or CheckInConfig()
        self.translator = translator or Translator()
        self.registry = CheckInRegistry()
        self.app = create_app(
            self.registry,
            RateLimiter(self.config.rate, self.config.burst),
            self.translator,
            url=self.url,
        )
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def url(self) -> str:
        return checkin_url(self.config.port, self.translator.language)

    def start(self) -> None:
        if self._thread is not None:
            return
        uv_config = uvicorn.Config(self.app, host=self.config.host, port=self.config.port, log_level="warning")
        self._server = uvicorn.Server(uv_config)
        self._thread = threading.Thread(target=self._server.run, name="checkin-server", daemon=True)
        self._thread.start()
        logger.info("check-in server listening on %s", self.url)

    def stop(self) -> None:
        if self._server is None:
            return
        self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._server = None
        self._thread = None
        logger.info("check-in server stopped with %d participant(s)", self.registry.count())

    def participants(self) -> List[Participant]:
        return self.registry.participants()
