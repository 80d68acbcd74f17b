"""Read-only HTTP API over the last saved collection."""

from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse

from episodic import __version__
from episodic.storage import load_raw

MISSING_MESSAGE = "Output not available yet. Run a scrape first."


def create_app(output_path: Path) -> FastAPI:
    """App serving output_path as-is; the file is re-read on every request."""
    app = FastAPI(title="episodic", version=__version__)
    output_path = Path(output_path)

    @app.get("/", response_class=PlainTextResponse)
    def read_root() -> str:
        return "episodic is running"

    @app.get("/anime")
    def read_anime():
        try:
            return JSONResponse(load_raw(output_path))
        except (OSError, ValueError):
            return JSONResponse({"error": MISSING_MESSAGE}, status_code=500)

    return app


def serve(output_path: Path, *, host: str = "127.0.0.1", port: int = 3000) -> None:
    import uvicorn

    print(f"Serving {output_path} on http://{host}:{port}/anime", flush=True)
    uvicorn.run(create_app(output_path), host=host, port=port)
