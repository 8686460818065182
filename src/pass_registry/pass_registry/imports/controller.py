from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..common.web import editor_required, error_response
from ..container import Container
from ..core.enums import ImportMode
from ..core.exceptions import DomainError, StoreError
from .rows import read_spreadsheet


def _incoming_rows() -> list:
    """Rows from an uploaded spreadsheet (`file`) or a JSON body `{passes: [...]}`."""
    upload = request.files.get("file")
    if upload is not None and upload.filename:
        return read_spreadsheet(upload.stream, upload.filename)

    payload = request.get_json(silent=True) or {}
    rows = payload.get("passes")
    return rows if isinstance(rows, list) else []


def register(app: Flask, container: Container) -> None:
    def _run(mode: ImportMode):
        try:
            rows = _incoming_rows()
            result = container.reconciler.reconcile(rows, author_id=int(session["user_id"]), mode=mode)
        except (DomainError, StoreError) as e:
            return error_response(e)

        # Per-row results come back even when the commit failed.
        status = 500 if result.error else 200
        return jsonify(result.to_dict()), status

    @app.route("/api/bulk-add-passes", methods=["POST"], endpoint="bulk_add_passes")
    @editor_required
    def bulk_add_passes():
        return _run(ImportMode.AUTO)

    @app.route("/api/bulk-import-historical", methods=["POST"], endpoint="bulk_import_historical")
    @editor_required
    def bulk_import_historical():
        return _run(ImportMode.HISTORICAL)
