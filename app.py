# app.py
"""
Flask entrypoint for the OnlyScores backend.

Routes:
  JSON:
    - GET  /v1/leagues
    - GET  /v1/teams?leagueId=<id>
    - GET  /v1/scores?leagueIds=<csv>&teamIds=<csv>&date=<YYYY-MM-DD>&window=<day|week>
    - POST /v1/device/subscribe
    - POST /v1/analytics/events
    - GET  /health

Notes:
  - Upstream (TheSportsDB) failures surface as 502 with a short error message.
  - The provider cache is built once per process and injected into the service.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from flask import Flask, jsonify, request

from onlyscores.cache import TTLCache
from onlyscores.config import AppConfig
from onlyscores.handlers.api_handler import ApiHandler, BadRequest
from onlyscores.services.scores_service import ScoresService
from onlyscores.sportsdb_client import SportsDbClient, UpstreamError

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Configure process-wide logging once."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(cfg: Optional[AppConfig] = None, scores_service: Optional[ScoresService] = None) -> Flask:
    """
    App factory.

    Builds shared dependencies (client + cache + scores service) once per process.
    Tests pass their own service to avoid network access.
    """
    cfg = cfg or AppConfig()

    if scores_service is None:
        client = SportsDbClient(cfg.sportsdb_base_url, cfg.sportsdb_api_key, timeout=cfg.http_timeout_seconds)
        scores_service = ScoresService(client=client, cache=TTLCache(), config=cfg)

    handler = ApiHandler(scores_service=scores_service)

    app = Flask(__name__)

    # -------------------------
    # Error mapping
    # -------------------------

    @app.errorhandler(BadRequest)
    def bad_request(exc: BadRequest):
        return jsonify({"error": str(exc)}), 400

    @app.after_request
    def allow_cors(response):
        """Allow the mobile app (and web previews) to call every route."""
        response.headers.setdefault("Access-Control-Allow-Origin", "*")
        response.headers.setdefault("Access-Control-Allow-Headers", "Content-Type")
        return response

    # -------------------------
    # JSON routes
    # -------------------------

    @app.get("/v1/leagues")
    def leagues():
        """Curated league list."""
        try:
            return jsonify(handler.leagues())
        except UpstreamError:
            return jsonify({"error": "Unable to load leagues."}), 502

    @app.get("/v1/teams")
    def teams():
        """
        Teams for one league.

        Query:
          - leagueId=<id> (required)
        """
        league_id = request.args.get("leagueId")
        try:
            return jsonify(handler.teams(league_id))
        except UpstreamError:
            logger.warning("Teams fetch failed for league %s", league_id)
            return jsonify({"error": "Unable to load teams."}), 502

    @app.get("/v1/scores")
    def scores():
        """
        Score cards for the requested selection.

        Query:
          - leagueIds=<csv> and/or teamIds=<csv> (at least one required)
          - date=YYYY-MM-DD (optional)
          - window=day|week (optional; week skips date filtering)
        """
        query = handler.build_scores_query(
            request.args.getlist("leagueIds"),
            request.args.getlist("teamIds"),
            request.args.get("date"),
            request.args.get("window"),
        )
        try:
            return jsonify(handler.scores(query))
        except UpstreamError:
            logger.warning("Scores fetch failed for %s", query.cache_key())
            return jsonify({"error": "Unable to load scores."}), 502

    @app.post("/v1/device/subscribe")
    def device_subscribe():
        """Accept a push subscription (fire-and-forget)."""
        handler.accept("device_subscribe", request.get_json(silent=True))
        return "", 204

    @app.post("/v1/analytics/events")
    def analytics_events():
        """Accept an analytics event (fire-and-forget)."""
        handler.accept("analytics_event", request.get_json(silent=True))
        return "", 204

    # -------------------------
    # Health
    # -------------------------

    @app.get("/health")
    def health():
        """Simple health endpoint for Docker/monitoring checks."""
        return {"ok": True}

    return app


# WSGI entrypoint for gunicorn (Docker CMD uses: app:app)
_cfg = AppConfig()
configure_logging(_cfg.log_level)
app = create_app(_cfg)

if __name__ == "__main__":
    # Dev server (not for production).
    logger.info("OnlyScores backend listening on %s", _cfg.port)
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", str(_cfg.port))), debug=True)
