import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

# Allow running from a source checkout without installing
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from resonote import __version__  # noqa: E402
from resonote.config_loader import Config  # noqa: E402
from resonote.errors import (  # noqa: E402
    InsufficientResultsError,
    InvalidArgumentError,
    NotReadyError,
    ResoNoteError,
    TrackNotFoundError,
)
from resonote.logging_utils import configure_logging, run_context  # noqa: E402
from resonote.playlist.utils import display_artist, display_name  # noqa: E402
from resonote.service import RecommendationService  # noqa: E402
from resonote.track_store import TrackStore  # noqa: E402

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(os.getenv("RESONOTE_CONFIG_PATH", ROOT_DIR / "config.yaml"))

ERROR_STATUS = {
    InvalidArgumentError: 400,
    TrackNotFoundError: 404,
    InsufficientResultsError: 422,
    NotReadyError: 503,
}


class WeightedRequest(BaseModel):
    similarity_type: Optional[str] = None
    semantic_weight: Optional[float] = None
    audio_weight: Optional[float] = None

    def overrides(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True, include={"similarity_type", "semantic_weight", "audio_weight"})


class GenerateRequest(WeightedRequest):
    track_ids: List[str] = Field(default_factory=list, description="Seed track IDs")
    min_tracks: Optional[int] = None
    max_tracks: Optional[int] = None
    diversity_factor: Optional[float] = None
    include_seed_tracks: Optional[bool] = None
    allow_track_variations: Optional[bool] = None
    min_similarity: Optional[float] = None

    def overrides(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True, exclude={"track_ids"})


class SimilarityMatrixRequest(WeightedRequest):
    track_ids: List[str] = Field(default_factory=list)


class EvaluationRequest(WeightedRequest):
    seed_track_ids: List[str] = Field(default_factory=list)
    playlist_track_ids: List[str] = Field(default_factory=list)


class CrossValidationRequest(WeightedRequest):
    track_ids: List[str] = Field(default_factory=list)
    k: int = 5


def _error_response(exc: ResoNoteError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        500,
    )
    if status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc}")
    else:
        logger.info(f"{type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": str(exc), "detail": exc.detail()},
    )


def get_service(request: Request) -> RecommendationService:
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise NotReadyError()
    return service


def create_app(store: Optional[TrackStore] = None, config: Optional[Config] = None) -> FastAPI:
    """
    Build the API.

    With no arguments the config is read from RESONOTE_CONFIG_PATH and the
    corpus is loaded during startup. Passing a loaded ``store`` skips the load.
    Requests arriving before startup completes get 503.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = config
        track_store = store
        if track_store is None or not track_store.is_loaded:
            cfg = cfg or Config(str(CONFIG_PATH))
            configure_logging(level=cfg.log_level, log_file=cfg.log_file)
            track_store = track_store or TrackStore()
            await track_store.load_async(cfg.tracks_path, cfg.features_path)
        app.state.service = RecommendationService(track_store, cfg)
        logger.info(f"ResoNote API ready ({len(track_store):,} tracks)")
        yield
        app.state.service = None

    app = FastAPI(title="ResoNote API", version=__version__, lifespan=lifespan)
    app.state.service = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ResoNoteError)
    async def handle_resonote_error(_: Request, exc: ResoNoteError) -> JSONResponse:
        return _error_response(exc)

    @app.get("/api")
    def api_info() -> Dict[str, Any]:
        return {
            "success": True,
            "name": "ResoNote API",
            "version": __version__,
            "endpoints": [route.path for route in app.routes if route.path.startswith("/api/")],
        }

    @app.post("/api/playlists/generate")
    def generate_playlist(
        request: GenerateRequest, service: RecommendationService = Depends(get_service)
    ) -> Dict[str, Any]:
        with run_context():
            playlist = service.generate_playlist(request.track_ids, request.overrides())
        return {"success": True, "playlist": playlist.to_dict()}

    @app.get("/api/playlists/tracks/{track_id}")
    def get_similar_tracks(
        track_id: str,
        limit: Optional[int] = Query(None),
        similarity_type: Optional[str] = Query(None),
        semantic_weight: Optional[float] = Query(None),
        audio_weight: Optional[float] = Query(None),
        min_similarity: Optional[float] = Query(None),
        service: RecommendationService = Depends(get_service),
    ) -> Dict[str, Any]:
        results = service.find_similar_tracks(track_id, {
            "limit": limit,
            "similarity_type": similarity_type,
            "semantic_weight": semantic_weight,
            "audio_weight": audio_weight,
            "min_similarity": min_similarity,
        })
        source = service.store.require_track(track_id)

        similar_tracks = []
        for result in results:
            track = service.store.require_track(result.track_id)
            similar_tracks.append({
                "track_id": result.track_id,
                "name": display_name(track),
                "artist": display_artist(track),
                "similarity": result.similarity,
            })
        return {
            "success": True,
            "track": {"track_id": source.track_id, "name": display_name(source), "artist": display_artist(source)},
            "similar_tracks": similar_tracks,
        }

    @app.get("/api/playlists/facets")
    def get_facets(service: RecommendationService = Depends(get_service)) -> Dict[str, Any]:
        return {"success": True, "facets": service.get_facets()}

    @app.get("/api/playlists/tags")
    def get_tags(
        facet: Optional[str] = Query(None), service: RecommendationService = Depends(get_service)
    ) -> Dict[str, Any]:
        return {"success": True, "tags": service.get_tags(facet)}

    @app.get("/api/playlists/facets/{facet}/tags")
    def get_tags_by_facet(facet: str, service: RecommendationService = Depends(get_service)) -> Dict[str, Any]:
        return {"success": True, "facet": facet, "tags": service.get_tags(facet)}

    @app.get("/api/similarity")
    def get_similarity(
        track_id1: str = Query(..., min_length=1),
        track_id2: str = Query(..., min_length=1),
        similarity_type: str = Query("combined"),
        semantic_weight: float = Query(0.5),
        audio_weight: float = Query(0.5),
        breakdown: bool = Query(False),
        service: RecommendationService = Depends(get_service),
    ) -> Dict[str, Any]:
        result = service.similarity(
            track_id1, track_id2, similarity_type, semantic_weight, audio_weight, breakdown=breakdown
        )
        if breakdown:
            return {"success": True, "breakdown": result.to_dict()}
        return {"success": True, "similarity": result}

    @app.get("/api/analysis/tracks/{track_id}")
    def analyze_track(track_id: str, service: RecommendationService = Depends(get_service)) -> Dict[str, Any]:
        return {"success": True, "analysis": service.analyze_track(track_id).to_dict()}

    @app.post("/api/analysis/similarity-matrix")
    def similarity_matrix(
        request: SimilarityMatrixRequest, service: RecommendationService = Depends(get_service)
    ) -> Dict[str, Any]:
        matrix = service.similarity_matrix(request.track_ids, request.overrides())
        return {"success": True, "track_ids": request.track_ids, "matrix": matrix.tolist()}

    @app.post("/api/evaluation/playlist")
    def evaluate_playlist(
        request: EvaluationRequest, service: RecommendationService = Depends(get_service)
    ) -> Dict[str, Any]:
        evaluation = service.evaluate_playlist(
            request.seed_track_ids, request.playlist_track_ids, request.overrides()
        )
        return {"success": True, "evaluation": evaluation.to_dict()}

    @app.post("/api/evaluation/cross-validate")
    def cross_validate(
        request: CrossValidationRequest, service: RecommendationService = Depends(get_service)
    ) -> Dict[str, Any]:
        result = service.cross_validate(request.track_ids, request.k, request.overrides())
        return {"success": True, "cross_validation": result.to_dict()}

    return app


app = create_app()
