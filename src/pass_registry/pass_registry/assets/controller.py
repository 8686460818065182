from __future__ import annotations

from flask import Flask, jsonify, request, send_file

from ..common.web import editor_required, error_response, login_required
from ..container import Container
from ..core.exceptions import DomainError, StoreError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/upload-image-asset", methods=["POST"], endpoint="upload_image_asset")
    @editor_required
    def upload_image_asset():
        upload = request.files.get("file")
        if upload is None or not upload.filename:
            return jsonify({"error": "No file provided."}), 400
        try:
            asset_ref = container.asset_store.upload(upload.stream, upload.filename, upload.mimetype)
        except (DomainError, StoreError) as e:
            return error_response(e)
        return jsonify({
            "message": "Image uploaded successfully",
            "assetId": asset_ref,
            "filename": upload.filename,
        }), 201

    @app.route("/api/assets/<asset_ref>", methods=["GET"], endpoint="asset_file")
    @login_required
    def asset_file(asset_ref: str):
        path = container.asset_store.path_for(asset_ref)
        if path is None:
            return jsonify({"error": "Asset not found"}), 404
        return send_file(path)
