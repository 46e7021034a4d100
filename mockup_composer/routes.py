"""
Flask routes for Mockup Composer
JSON API used by the placement editor and the mockup generation client
"""

import binascii
import uuid

import pydantic
from flask import Blueprint, current_app, jsonify, request
from loguru import logger

from . import __version__
from .config import CompositionSettings, load_config
from .errors import (
    MockupComposerError, ValidationError, ImageLoadError, status_code_for
)
from .models import CompositionRequest
from .pipeline import compose
from .sources import decode_inline


bp = Blueprint('api', __name__, url_prefix='/api')


@bp.route('/health', methods=['GET'])
def health():
    """Liveness check"""
    return jsonify({'status': 'ok', 'version': __version__})


@bp.route('/compose', methods=['POST'])
def compose_mockup():
    """Compose the capture and guide images for one generation request"""
    request_id = uuid.uuid4().hex[:8]

    try:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise ValidationError(
                "Request body must be a JSON object",
                suggestions=["Send Content-Type: application/json"]
            )

        composition = build_composition_request(payload)

        logger.info(f"Request {request_id}: {len(composition.design_images)} designs, "
                    f"mode={composition.mockup_mode.value}")

        assets = compose(composition, get_composition_settings())
        return jsonify(assets.to_dict())

    except (ValidationError, ImageLoadError) as e:
        logger.warning(f"Request {request_id} rejected: {e}")
        return jsonify(e.to_dict()), status_code_for(e)

    except MockupComposerError as e:
        logger.error(f"Request {request_id} failed: {e}")
        return jsonify(e.to_dict()), status_code_for(e)


@bp.errorhandler(413)
def payload_too_large(error):
    limit_mb = current_app.config.get('MAX_UPLOAD_SIZE', 0) / (1024 * 1024)
    failure = ValidationError(
        f"Request exceeds the {limit_mb:.0f}MB upload limit",
        details={'limit_bytes': current_app.config.get('MAX_UPLOAD_SIZE')},
        suggestions=["Downscale the product photo before uploading"]
    )
    return jsonify(failure.to_dict()), 413


def build_composition_request(payload: dict) -> CompositionRequest:
    """Validate the JSON body and decode the inline image payloads."""
    base_source = payload.get('base_image')
    design_sources = payload.get('design_images')

    if not isinstance(base_source, str) or not base_source:
        raise ValidationError("base_image must be a data URL or base64 string")
    if not isinstance(design_sources, list) or not design_sources:
        raise ValidationError("design_images must be a non-empty list")

    base_bytes = decode_source(base_source, "product image")
    design_bytes = [
        decode_source(source, f"design image {i + 1}", index=i)
        for i, source in enumerate(design_sources)
    ]

    mode = payload.get('mockup_mode') or 'engrave'
    if isinstance(mode, str):
        mode = mode.strip().lower()

    try:
        return CompositionRequest(
            base_image=base_bytes,
            design_images=design_bytes,
            placements=payload.get('placements') or [],
            editor_viewport=payload.get('editor_viewport'),
            mockup_mode=mode,
        )
    except pydantic.ValidationError as e:
        raise ValidationError(
            "Invalid composition request",
            details={'errors': [
                {'field': '.'.join(str(p) for p in err['loc']), 'message': err['msg']}
                for err in e.errors()
            ]}
        ) from e


def decode_source(source, label: str, index: int = None) -> bytes:
    """Inline payloads only; HTTP callers never get to name server-side files."""
    if not isinstance(source, str):
        raise ImageLoadError(label, "expected a data URL or base64 string", index=index)
    try:
        return decode_inline(source)
    except (binascii.Error, ValueError) as e:
        raise ImageLoadError(label, f"not a valid image payload ({e})", index=index) from e


def get_composition_settings() -> CompositionSettings:
    settings = current_app.extensions.get('mockup_composer')
    if settings is None:
        settings = CompositionSettings.from_config(load_config())
        current_app.extensions['mockup_composer'] = settings
    return settings
