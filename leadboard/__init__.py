"""
Flask application factory.

Creates and configures the Flask app, wires the document store and registers
all blueprints.
"""
import logging

from flask import Flask, jsonify

logger = logging.getLogger('leadboard')


def create_app(document_store=None):
    """Create and configure the Flask application.

    document_store overrides the configured backend (tests pass a memory store).
    """
    from leadboard.config import SECRET_KEY, PERSIST_ASYNC
    from leadboard.errors import DocumentStoreError, FilterValidationError, NotFoundError
    from leadboard.logging_config import configure_logging
    from leadboard.services.document_store import DocumentWriter, get_document_store

    app = Flask(__name__)
    configure_logging(app)
    app.secret_key = SECRET_KEY

    if document_store is None:
        document_store = get_document_store()
    app.extensions['leadboard.writer'] = DocumentWriter(document_store, background=PERSIST_ASYNC)
    logger.info("Using %s (background writes: %s)", type(document_store).__name__, PERSIST_ASYNC)

    @app.errorhandler(FilterValidationError)
    def _validation_error(e):
        return jsonify({'error': str(e)}), 400

    @app.errorhandler(NotFoundError)
    def _not_found(e):
        return jsonify({'error': str(e)}), 404

    @app.errorhandler(DocumentStoreError)
    def _store_unavailable(e):
        return jsonify({'error': 'Document store unavailable, try again'}), 503

    @app.errorhandler(500)
    def _server_error(e):
        logger.error("Unhandled error: %s", getattr(e, 'original_exception', None) or e)
        return jsonify({'error': 'Internal server error'}), 500

    from leadboard.routes.health import bp as health_bp
    from leadboard.routes.leads import bp as leads_bp
    from leadboard.routes.filters import bp as filters_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(leads_bp)
    app.register_blueprint(filters_bp)

    return app
