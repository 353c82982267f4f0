"""
routes/services.py — Shared-service route handlers. Admin only.

Endpoints (url_prefix=/api/v1/services):
  POST   /services        → 201  create service
  GET    /services        → 200  list with occupancy
  GET    /services/:id    → 200  detail with active subscribers
  PATCH  /services/:id    → 200  update display name / capacity
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from subpool.app.extensions import db
from subpool.app.middleware.auth_middleware import require_admin
from subpool.app.schemas.service_schema import CreateServiceSchema, UpdateServiceSchema
from subpool.app.services import roster_service

services_bp = Blueprint("services", __name__)


@services_bp.route("/", methods=["POST"])
@require_admin
def create_service():
    data = CreateServiceSchema().load(request.get_json(force=True) or {})
    result = roster_service.create_service(
        name=data["name"],
        display_name=data["display_name"].strip(),
        max_members=data["max_members"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@services_bp.route("/", methods=["GET"])
@require_admin
def list_services():
    result = roster_service.list_services(session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@services_bp.route("/<int:service_id>", methods=["GET"])
@require_admin
def get_service(service_id: int):
    result = roster_service.get_service(service_id=service_id, session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@services_bp.route("/<int:service_id>", methods=["PATCH"])
@require_admin
def update_service(service_id: int):
    """PATCH /services/:id — Partial update. Capacity may not drop below occupancy."""
    data = UpdateServiceSchema().load(request.get_json(force=True) or {})
    display_name = data.get("display_name")
    result = roster_service.update_service(
        service_id=service_id,
        display_name=display_name.strip() if display_name is not None else None,
        max_members=data.get("max_members"),
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200
