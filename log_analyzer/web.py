"""Flask HTTP surface: log upload and stored analyses."""

import logging
import os
import uuid

from flask import Flask, request, jsonify
from werkzeug.utils import secure_filename

from log_analyzer.config import Config
from log_analyzer.models import AggregateRecord
from log_analyzer.pipeline import LogPipeline
from log_analyzer.reader import SourceReadError
from log_analyzer.repository import AnalysisRepository, RecordNotFoundError
from log_analyzer.service import LogAnalysisService

logger = logging.getLogger(__name__)


def _owner_id() -> int | None:
    """Owner from the form field or the X-Owner-ID header, if present."""
    raw = request.form.get("owner_id") or request.headers.get("X-Owner-ID")
    if raw is None or raw == "":
        return None
    return int(raw)


def create_app(config: Config | None = None,
               service: LogAnalysisService | None = None) -> Flask:
    """Flask application factory."""
    app = Flask(__name__)

    if config is None:
        config = Config()
    if service is None:
        service = LogAnalysisService(
            LogPipeline(config), AnalysisRepository(config.store_path)
        )

    app.config["UPLOAD_DIR"] = config.upload_dir
    app.config["components"] = {"config": config, "service": service}

    # --- Routes ---

    @app.route("/health")
    def health():
        return jsonify(status="ok")

    @app.route("/upload", methods=["POST"])
    def upload():
        file = request.files.get("file")
        if file is None or not file.filename:
            return jsonify(error="file required"), 400
        try:
            owner_id = _owner_id() or 0
        except ValueError:
            return jsonify(error="owner_id must be an integer"), 400

        upload_dir = app.config["UPLOAD_DIR"]
        os.makedirs(upload_dir, exist_ok=True)
        filename = secure_filename(file.filename) or "upload.log"
        dst = os.path.join(upload_dir, f"{uuid.uuid4().hex[:8]}_{filename}")
        try:
            file.save(dst)
        except OSError as e:
            logger.error("Failed to save upload to %s: %s", dst, e)
            if os.path.exists(dst):
                os.unlink(dst)
            return jsonify(error="failed to save file"), 500

        try:
            record = service.analyze_file(dst, owner_id=owner_id, source_name=filename)
        except SourceReadError as e:
            return jsonify(error=str(e)), 500
        finally:
            if os.path.exists(dst):
                os.unlink(dst)

        return jsonify(record.to_dict()), 201

    @app.route("/analyses", methods=["POST"])
    def create_analysis():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify(error="JSON object body required"), 400
        try:
            owner_id = _owner_id()
            record = AggregateRecord.from_dict(data)
        except ValueError as e:
            return jsonify(error=str(e)), 400
        if owner_id is not None:
            record.owner_id = owner_id
        stored = service.create_analysis(record)
        return jsonify(stored.to_dict()), 201

    @app.route("/analyses", methods=["GET"])
    def list_analyses():
        owner_id = request.args.get("owner_id", None, type=int)
        records = service.list_analyses(owner_id=owner_id)
        return jsonify([r.to_dict() for r in records])

    @app.route("/analyses/<int:record_id>", methods=["GET"])
    def get_analysis(record_id: int):
        try:
            record = service.get_analysis(record_id)
        except RecordNotFoundError as e:
            return jsonify(error=str(e)), 404
        return jsonify(record.to_dict())

    @app.route("/analyses/<int:record_id>", methods=["PUT"])
    def update_analysis(record_id: int):
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify(error="JSON object body required"), 400
        try:
            record = AggregateRecord.from_dict({**data, "id": record_id})
        except ValueError as e:
            return jsonify(error=str(e)), 400
        try:
            updated = service.update_analysis(record)
        except RecordNotFoundError as e:
            return jsonify(error=str(e)), 404
        return jsonify(updated.to_dict())

    @app.route("/analyses/<int:record_id>", methods=["DELETE"])
    def delete_analysis(record_id: int):
        try:
            service.delete_analysis(record_id)
        except RecordNotFoundError as e:
            return jsonify(error=str(e)), 404
        return jsonify(message="deleted")

    return app
