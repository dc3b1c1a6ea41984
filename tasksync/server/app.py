"""FastAPI application serving the remote key-document store."""

import json
import logging
import time

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from ..config import Config
from ..models import Collection
from .document_store import DocumentStore

logger = logging.getLogger(__name__)

VALID_TYPES = {collection.value for collection in Collection}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(config: Config, store: DocumentStore) -> FastAPI:
    """Create the remote store application.

    Args:
        config: Application configuration.
        store: Document storage for the collections.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="tasksync store",
        description="Key-document store for tasksync collections",
        version="0.1.0",
    )

    app.state.config = config
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.api_route("/api", methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
    async def store_endpoint(
        request: Request,
        doc_type: str | None = Query(default=None, alias="type"),
    ):
        """Read or replace the document of one collection type."""
        if request.method == "OPTIONS":
            return Response(status_code=204)

        if doc_type == "health":
            return {"status": "ok", "timestamp": int(time.time() * 1000)}

        if doc_type not in VALID_TYPES:
            return _error(400, "Invalid or missing type parameter")

        try:
            if request.method == "GET":
                document = store.get(doc_type)
                return JSONResponse(content=document if document is not None else [])

            if request.method == "POST":
                raw = await request.body()
                if not raw.strip():
                    return _error(400, "Missing body")
                try:
                    body = json.loads(raw)
                except ValueError:
                    return _error(400, "Invalid JSON body")
                if body is None:
                    return _error(400, "Missing body")

                store.put(doc_type, body)
                count = len(body) if isinstance(body, list) else 1
                return {"success": True, "count": count}

            return _error(405, "Method not allowed")

        except Exception as e:
            logger.error(f"Backend error ({doc_type}): {e}")
            return _error(500, str(e) or "Internal Server Error")

    return app
