"""
Lane Tag Compiler - Web Application

FastAPI backend that turns raw OpenStreetMap way tags into complete lane
records: lane counts per direction, turn markings and surface, with every
inferred value flagged and inconsistent tags reported as warnings.
"""

import logging
import os
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config import HOST, LOG_LEVEL, PORT
from middleware.rate_limit import RateLimitMiddleware
from services.errors import InvalidEncodingError
from services.inference.registry import DEFINITIONS_BY_TAG
from services.overpass_parser import OverpassResponseError, process_response
from services.tags import OUTPUT_TAGS, TAG_VALUE_TYPES
from services.validators import (
    validate_batch_size,
    validate_nodes,
    validate_tags,
    validate_way_id,
)
from services.way_compiler import RawWay, compile_way, compile_ways

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger("main")

APP_VERSION = "1.0.0"

# ===========================================================================
# FastAPI app
# ===========================================================================

app = FastAPI(
    title="Lane Tag Compiler",
    description="Infer complete, consistent lane layouts from OpenStreetMap way tags",
    version=APP_VERSION,
)

# ===========================================================================
# Middleware (order matters - first added = outermost)
# ===========================================================================

CORS_ORIGINS = os.environ.get(
    "CORS_ORIGINS",
    "http://localhost:8080,http://127.0.0.1:8080",
).split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(RateLimitMiddleware)

# ===========================================================================
# Request/Response models
# ===========================================================================


class RawWayRequest(BaseModel):
    id: int
    nodes: list[int] = []
    tags: dict[str, str] = {}


class CompileBatchRequest(BaseModel):
    ways: list[RawWayRequest]


class OverpassProcessRequest(BaseModel):
    response: dict  # Parsed Overpass JSON: {"elements": [...]}
    relation_id: Optional[int] = None


# ===========================================================================
# Helper functions
# ===========================================================================


def to_raw_way(body: RawWayRequest) -> RawWay:
    """Validate a request body and convert it to a RawWay."""
    validate_way_id(body.id)
    validate_nodes(body.nodes)
    validate_tags(body.tags)
    return RawWay(id=body.id, nodes=tuple(body.nodes), tags=dict(body.tags))


def batch_response(results) -> dict:
    compiled = sum(1 for result in results if result.ok)
    return {
        "compiled": compiled,
        "skipped": len(results) - compiled,
        "results": [result.to_dict() for result in results],
    }


# ===========================================================================
# Routes - API
# ===========================================================================


@app.post("/api/ways/compile")
async def compile_single_way(request_body: RawWayRequest):
    """Compile one raw way into a complete lane record."""
    try:
        way = to_raw_way(request_body)
        record = compile_way(way)
        return record.to_dict()
    except HTTPException:
        raise
    except InvalidEncodingError as e:
        logger.warning(f"Way {request_body.id} could not be processed: {e}")
        raise HTTPException(
            status_code=422,
            detail={"error": str(e), "key": e.key, "value": e.value},
        )
    except Exception as e:
        logger.error(f"Way compilation failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": f"Way compilation failed: {str(e)}"},
        )


@app.post("/api/ways/compile-batch")
async def compile_way_batch(request_body: CompileBatchRequest):
    """
    Compile many raw ways. Malformed ways are reported per way and do not
    fail the request.
    """
    try:
        validate_batch_size(len(request_body.ways))
        ways = [to_raw_way(body) for body in request_body.ways]
        return batch_response(compile_ways(ways))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Batch compilation failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": f"Batch compilation failed: {str(e)}"},
        )


@app.post("/api/overpass/process")
async def process_overpass_response(request_body: OverpassProcessRequest):
    """Compile the road ways of one relation from an Overpass JSON response."""
    try:
        if request_body.relation_id is not None:
            validate_way_id(request_body.relation_id)
        results = process_response(request_body.response, request_body.relation_id)
        return batch_response(results)
    except HTTPException:
        raise
    except OverpassResponseError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Overpass processing failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": f"Overpass processing failed: {str(e)}"},
        )


@app.get("/api/tags")
async def list_tags():
    """Return every output tag with its raw key, value type and default."""
    return {
        "tags": [
            {
                "tag": tag.value,
                "key": tag.osm_key,
                "type": TAG_VALUE_TYPES[tag].type_name,
                "default": str(DEFINITIONS_BY_TAG[tag].default),
            }
            for tag in OUTPUT_TAGS
        ]
    }


# ===========================================================================
# Health check
# ===========================================================================


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "Lane Tag Compiler",
        "version": APP_VERSION,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=HOST, port=PORT)
