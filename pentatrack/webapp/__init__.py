from __future__ import annotations

import logging
import os
from datetime import date
from typing import Any, Callable, Optional, Sequence

from flask import Flask, jsonify, request

from .. import __version__, storage
from ..aggregation import DailyRpe, YearMatrix
from ..calendar_utils import MonthBlock
from ..config import get_config
from ..models import TrainingSession, ValidationError, parse_iso_date
from ..scope import ScopeWindow
from ..services import build_season_report, build_stats_report
from ..summary import CompositorPolicy

SessionsLoader = Callable[[], Sequence[TrainingSession]]

LOGGER = logging.getLogger(__name__)


def create_app(sessions_loader: Optional[SessionsLoader] = None) -> Flask:
    """
    Build the read-only statistics API.

    `sessions_loader` returns the sessions to aggregate on each request; it
    defaults to the JSON session store.
    """
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
    app = Flask(__name__)
    app.config["SESSIONS_LOADER"] = sessions_loader or storage.load_training_sessions
    register_api(app)
    return app


def _loader(app: Flask) -> SessionsLoader:
    return app.config["SESSIONS_LOADER"]


def _bool_arg(name: str) -> Optional[bool]:
    raw = request.args.get(name)
    if raw is None:
        return None
    lowered = raw.strip().lower()
    if lowered in {"1", "true", "yes"}:
        return True
    if lowered in {"0", "false", "no"}:
        return False
    raise ValidationError(f"{name} must be true or false; received {raw!r}.")


def _policy() -> CompositorPolicy:
    """
    Compositor policy from the query string.

    `fold` sets both outputs at once; `fold_weekly` and `fold_totals` override
    the weekly roll-up and the totals table individually.
    """
    both = _bool_arg("fold")
    weekly = _bool_arg("fold_weekly")
    totals = _bool_arg("fold_totals")
    return CompositorPolicy.from_config(
        fold_in_weekly=both if weekly is None else weekly,
        fold_in_totals=both if totals is None else totals,
    )


def _optional_int(name: str) -> Optional[int]:
    raw = request.args.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValidationError(f"{name} must be an integer; received {raw!r}.") from exc


def _window_payload(window: ScopeWindow) -> dict[str, Any]:
    return {
        "kind": window.kind,
        "start": window.start.isoformat(timespec="milliseconds"),
        "end": window.end.isoformat(timespec="milliseconds"),
    }


def _daily_rpe_payload(series: Sequence[DailyRpe]) -> list[dict[str, Any]]:
    return [
        {
            "date": point.date.isoformat(),
            "average_rpe": round(point.average_rpe, 2),
            "sessions": [
                {"id": session.id, "discipline": session.discipline, "rpe": session.rpe}
                for session in point.sessions
            ],
        }
        for point in series
    ]


def _matrix_payload(matrix: YearMatrix) -> dict[str, list[dict[str, Any]]]:
    return {
        discipline: [
            {"week": week, **cell.as_dict(), "session_ids": [session.id for session in cell.sessions]}
            for week, cell in cells.items()
        ]
        for discipline, cells in matrix.items()
    }


def _blocks_payload(blocks: Sequence[MonthBlock]) -> list[dict[str, Any]]:
    return [
        {"label": block.label, "start_week": block.start_week, "span": block.span} for block in blocks
    ]


def register_api(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return jsonify({"error": str(exc)}), 400

    @app.get("/api/health")
    def health():
        return jsonify({"status": "ok", "version": __version__})

    @app.get("/api/athletes/<subject_id>/stats")
    def athlete_stats(subject_id: str):
        period = (request.args.get("period") or get_config().default_period).lower()
        date_text = request.args.get("date")
        reference = parse_iso_date(date_text, field="date") if date_text else date.today()
        custom_range = None
        if period == "custom":
            custom_range = (request.args.get("start"), request.args.get("end"))
        try:
            report = build_stats_report(
                _loader(app)(),
                subject_id=subject_id,
                period=period,
                reference=reference,
                custom_range=custom_range,
                policy=_policy(),
            )
        except ValidationError:
            raise
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        return jsonify(
            {
                "subject_id": subject_id,
                "label": report.label,
                "window": _window_payload(report.window),
                "session_count": len(report.sessions),
                "by_discipline": {key: stats.as_dict() for key, stats in report.by_discipline.items()},
                "totals": [row.as_dict() for row in report.totals],
                "summary": report.window_summary.as_dict(),
                "daily_rpe": _daily_rpe_payload(report.daily_rpe),
            }
        )

    @app.get("/api/athletes/<subject_id>/season")
    def athlete_season(subject_id: str):
        year = _optional_int("year")
        if year is None:
            year = date.today().year
        try:
            report = build_season_report(
                _loader(app)(),
                subject_id=subject_id,
                year=year,
                focus_week=_optional_int("week"),
                policy=_policy(),
            )
        except ValidationError:
            raise
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        LOGGER.debug("Season %s for %s built", year, subject_id)
        return jsonify(
            {
                "subject_id": subject_id,
                "year": report.year,
                "focus_week": report.focus_week,
                "month_blocks": _blocks_payload(report.month_blocks),
                "matrix": _matrix_payload(report.matrix),
                "scale": report.scale,
                "week": report.summary.week.as_dict(),
                "totals": [row.as_dict() for row in report.summary.totals],
            }
        )
