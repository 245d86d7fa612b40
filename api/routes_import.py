"""
api.routes_import - /api/v1/products/import endpoints.

Accepts a feed via multipart file upload or raw request body.
"""

from flask import request, jsonify

from api import api_bp
from catalog_sync import ImportMode, ImportOptions, run_import


def _param(name: str):
    """Query string first, then multipart form fields."""
    value = request.args.get(name)
    if value is None and request.content_type and "multipart" in request.content_type:
        value = request.form.get(name)
    return value


def _flag(name: str) -> bool:
    value = _param(name) or ""
    return value.strip().lower() in ("1", "true", "yes")


def _feed_content():
    """Return (content, error_response)."""
    if request.content_type and "multipart" in request.content_type:
        f = request.files.get("feed_file")
        if not f:
            return None, (jsonify({"error": "no feed_file in upload"}), 400)
        content = f.read()
    else:
        content = request.get_data()

    if not content:
        return None, (jsonify({"error": "empty body"}), 400)
    return content, None


@api_bp.route("/products/import", methods=["POST"])
def api_import_feed():
    """
    POST /api/v1/products/import?mode=create|update|skip_duplicates&dry_run=0|1

    Multipart: field name 'feed_file'; mode and dry_run may also be form fields
    Or: raw CSV as request body (Content-Type: text/csv).
    """
    try:
        mode = ImportMode.parse(_param("mode"))
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    content, error = _feed_content()
    if error:
        return error

    report = run_import(content, ImportOptions(mode=mode, dry_run=_flag("dry_run")))
    return jsonify(report.to_dict())


@api_bp.route("/products/import/validate", methods=["POST"])
def api_validate_feed():
    """POST /api/v1/products/import/validate - same body as import, nothing written."""
    content, error = _feed_content()
    if error:
        return error

    report = run_import(content, ImportOptions(validate_only=True))
    return jsonify(report.to_dict())
