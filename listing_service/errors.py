from flask import jsonify, request
from werkzeug.exceptions import HTTPException, MethodNotAllowed, NotFound

from listing_service.logger import logger


def register_error_handlers(app):
    @app.errorhandler(NotFound)
    def not_found(e):
        return jsonify({"error": "Not found."}), 404

    @app.errorhandler(MethodNotAllowed)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed."}), 405

    @app.errorhandler(Exception)
    def internal_error(e):
        # Let werkzeug render the remaining HTTP errors (e.g. 415) itself
        if isinstance(e, HTTPException):
            return e
        logger.error("Unhandled error", exc_info=e, extra={'endpoint': request.path, 'status_code': 500, 'error': str(e)})
        return jsonify({"error": "Internal server error."}), 500
