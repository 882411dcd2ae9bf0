"""
Project: Restaurant Back-Office (RBO)

Description:
REST routes for the menu catalog, including multipart image upload and
image download.
"""

from flask import Blueprint, Response, current_app, jsonify, request, send_from_directory

from catalog import DEFAULT_POPULAR_LIMIT, CatalogService
from errors import ValidationFailure
from models import db
from schemas import MenuItemCreate, MenuItemUpdate, parse

bp = Blueprint("menu_api", __name__)


def _catalog() -> CatalogService:
    ext = current_app.extensions
    return CatalogService(db.session, ext["rbo.notifier"], ext["rbo.images"])


def _upload():
    upload = request.files.get("image")
    if upload is None or not upload.filename:
        raise ValidationFailure("No image file uploaded")
    return upload


# ----- reads -----
@bp.get("/menu-items")
def list_menu_items():
    items = _catalog().list(category=request.args.get("category") or None)
    return jsonify([m.to_dict() for m in items])


@bp.get("/menu-items/popular")
def popular_menu_items():
    limit = request.args.get("limit", default=DEFAULT_POPULAR_LIMIT, type=int)
    return jsonify([m.to_dict() for m in _catalog().popular(limit)])


@bp.get("/menu-items/<int:item_id>")
def get_menu_item(item_id):
    return jsonify(_catalog().get(item_id).to_dict())


@bp.get("/menu-items/image/<int:item_id>")
def get_menu_item_image(item_id):
    data, content_type = _catalog().image(item_id)
    return Response(data, mimetype=content_type)


@bp.get("/public/menuIcons/<path:filename>")
def menu_icon(filename):
    return send_from_directory(current_app.extensions["rbo.images"].root, filename)


# ----- writes -----
@bp.post("/menu-items")
def create_menu_item():
    data = parse(MenuItemCreate, request.get_json(silent=True))
    return jsonify(_catalog().create(data).to_dict()), 201


@bp.post("/menu-items/upload")
def create_menu_item_with_image():
    upload = _upload()
    data = parse(MenuItemCreate, request.form.to_dict())
    return jsonify(_catalog().create(data, upload=upload).to_dict()), 201


@bp.put("/menu-items/<int:item_id>")
def update_menu_item(item_id):
    data = parse(MenuItemUpdate, request.get_json(silent=True))
    return jsonify(_catalog().update(item_id, data).to_dict())


@bp.put("/menu-items/<int:item_id>/upload")
def update_menu_item_with_image(item_id):
    catalog = _catalog()
    catalog.get(item_id)
    upload = _upload()
    # Blank form fields mean "leave unchanged"
    form = {k: v for k, v in request.form.items() if v != ""}
    data = parse(MenuItemUpdate, form)
    return jsonify(catalog.update(item_id, data, upload=upload).to_dict())


@bp.delete("/menu-items/<int:item_id>")
def delete_menu_item(item_id):
    _catalog().delete(item_id)
    return "", 204
