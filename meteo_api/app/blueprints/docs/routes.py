"""API documentation: Swagger UI page backed by a generated OpenAPI document."""
from flask import Blueprint, jsonify, render_template, url_for

from meteo_api.app.blueprints.api.status.routes import app_version
from meteo_api.app.blueprints.docs.openapi import build_openapi_spec

docs_bp = Blueprint('docs', __name__)


@docs_bp.route('', methods=['GET'])
def swagger_ui():
    return render_template('swagger_ui.html', spec_url=url_for('docs.openapi_json'))


@docs_bp.route('/openapi.json', methods=['GET'])
def openapi_json():
    return jsonify(build_openapi_spec(app_version())), 200
