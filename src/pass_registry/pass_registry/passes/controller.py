from __future__ import annotations

from flask import Flask, jsonify, request, send_file

from ..common.web import current_actor, editor_required, error_response, login_required
from ..container import Container
from ..core.exceptions import DomainError, StoreError
from .qr import barcode_payload, qr_payload, qr_png


def _form_payload() -> dict:
    """Flatten a multipart form; `areaAllowed` may repeat and is kept as a list."""
    form = request.form
    data = {key: form.get(key) for key in form.keys()}
    for key in ("areaAllowed", "area_allowed"):
        if key in form:
            values = form.getlist(key)
            data[key] = values if len(values) > 1 else values[0]
    return data


def register(app: Flask, container: Container) -> None:
    passes = container.pass_service

    @app.route("/api/add-pass", methods=["POST"], endpoint="add_pass")
    @editor_required
    def add_pass():
        data = _form_payload() if request.form else (request.get_json(silent=True) or {})
        try:
            record = passes.create_pass(data, actor=current_actor(), photo=request.files.get("photo"))
        except (DomainError, StoreError) as e:
            return error_response(e)
        return jsonify({"message": "Pass created successfully.", "pass": record.to_dict()}), 201

    @app.route("/api/update-pass", methods=["PATCH"], endpoint="update_pass")
    @editor_required
    def update_pass():
        data = _form_payload() if request.form else (request.get_json(silent=True) or {})
        doc_id = str(data.pop("id", "") or "").strip()
        if not doc_id:
            return jsonify({"error": "Document ID is required."}), 400
        try:
            record = passes.update_pass(doc_id, data, actor=current_actor(), photo=request.files.get("photo"))
        except (DomainError, StoreError) as e:
            return error_response(e)
        return jsonify({"message": "Pass updated successfully", "pass": record.to_dict()})

    @app.route("/api/delete-pass", methods=["POST"], endpoint="delete_pass")
    @editor_required
    def delete_pass():
        payload = request.get_json(silent=True) or {}
        ids = payload.get("ids")
        if not isinstance(ids, list):
            return jsonify({"error": "Invalid request body.", "details": {"ids": ["Expected a list of IDs."]}}), 400
        try:
            outcome = passes.delete_passes(ids, actor=current_actor())
        except (DomainError, StoreError) as e:
            return error_response(e)

        skipped = len(outcome.skipped)
        return jsonify({
            "success": True,
            "message": f"Successfully deleted {len(outcome.deleted)} pass(es).",
            "details": f"{skipped} pass(es) were skipped due to lack of permissions." if skipped else "",
        })

    @app.route("/api/get-passes", methods=["GET"], endpoint="get_passes")
    @login_required
    def get_passes():
        try:
            rows = passes.search(
                category=request.args.get("category"),
                search=request.args.get("search", ""),
                sort=request.args.get("sort", "createdAt_desc"),
            )
        except (DomainError, StoreError) as e:
            return error_response(e)
        return jsonify([p.to_dict() for p in rows])

    @app.route("/api/get-pass-details", methods=["GET"], endpoint="get_pass_details")
    @login_required
    def get_pass_details():
        doc_id = request.args.get("id", "").strip()
        if not doc_id:
            return jsonify({"error": "Pass ID is required"}), 400
        try:
            record = passes.get_pass(doc_id)
        except (DomainError, StoreError) as e:
            return error_response(e)

        body = record.to_dict()
        body["qr"] = qr_payload(record)
        body["barcode"] = barcode_payload(record)
        return jsonify(body)

    @app.route("/api/get-passes-by-ids", methods=["POST"], endpoint="get_passes_by_ids")
    @login_required
    def get_passes_by_ids():
        payload = request.get_json(silent=True) or {}
        try:
            found, not_found = passes.get_by_pass_ids(payload.get("category"), payload.get("passIds") or [])
        except (DomainError, StoreError) as e:
            return error_response(e)
        return jsonify({
            "employees": [p.to_dict() for p in found],
            "notFoundIds": not_found,
            "totalFound": len(found),
        })

    @app.route("/api/dashboard", methods=["GET"], endpoint="dashboard")
    @login_required
    def dashboard():
        try:
            return jsonify(passes.dashboard().to_dict())
        except (DomainError, StoreError) as e:
            return error_response(e)

    @app.route("/api/passes/export.xlsx", methods=["GET"], endpoint="export_passes")
    @login_required
    def export_passes():
        try:
            rows = passes.search(
                category=request.args.get("category"),
                search=request.args.get("search", ""),
                sort=request.args.get("sort", "createdAt_desc"),
            )
            output = passes.export_excel(rows)
        except (DomainError, StoreError) as e:
            return error_response(e)
        return send_file(
            output,
            download_name="pass_registry.xlsx",
            as_attachment=True,
            mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

    @app.route("/api/passes/<doc_id>/qr.png", methods=["GET"], endpoint="pass_qr_image")
    @login_required
    def pass_qr_image(doc_id: str):
        try:
            record = passes.get_pass(doc_id)
        except (DomainError, StoreError) as e:
            return error_response(e)
        return send_file(qr_png(record), mimetype="image/png")
