"""
api.routes_export - /api/v1/products/export endpoint.
"""

from datetime import date

from flask import Response, request

from api import api_bp
from db import get_session
from services.export_service import export_products


@api_bp.route("/products/export", methods=["GET"])
def api_export_feed():
    """
    GET /api/v1/products/export?status=&category=&region=

    Returns the catalog as a CSV attachment.
    """
    session = get_session()
    try:
        body = export_products(
            session,
            status=request.args.get("status") or None,
            category=request.args.get("category") or None,
            region=request.args.get("region") or None,
        )
    finally:
        session.close()

    filename = f"products-export-{date.today().isoformat()}.csv"
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
