"""
Admin API - small HTTP surface over the adapter manager.

Run with: python run_admin.py

Endpoints:
    GET    /health
    GET    /api/bidders
    GET    /api/s2s-config
    PUT    /api/s2s-config
    DELETE /api/s2s-config
    POST   /api/auctions
"""

from datetime import datetime
from typing import Optional

from flask import Flask, jsonify, request

from ..config.s2s_config import S2SConfig
from ..config.storage import S2SConfigStorage
from ..errors import ConfigurationError, InvalidAuctionInputError
from ..logging import get_logger
from ..manager import AdapterManager, get_adapter_manager

logger = get_logger(__name__)


def _safe_error_response(error: Exception, generic_message: str, status_code: int = 500):
    """
    Return a safe error response without leaking internal details.
    Logs the actual error server-side for debugging.
    """
    logger.error(generic_message, error=str(error), exc_info=True)
    return {'status': 'error', 'message': generic_message}, status_code


def create_app(
    manager: Optional[AdapterManager] = None,
    storage: Optional[S2SConfigStorage] = None,
) -> Flask:
    """
    Create the admin Flask app.

    Args:
        manager: Adapter manager to expose (process default if not provided)
        storage: Optional Redis storage; the stored S2S config is applied on
            startup and every accepted update is persisted
    """
    app = Flask(__name__)
    manager = manager or get_adapter_manager()

    if storage is not None:
        stored = storage.load()
        if stored is not None and manager.set_s2s_config(stored):
            logger.info("Loaded S2S config from storage", bidders=list(stored.bidders))

    @app.route('/health', methods=['GET'])
    def health():
        """Health check endpoint."""
        return jsonify({
            'status': 'healthy',
            's2s_enabled': manager.get_s2s_config().is_active,
            'storage_connected': storage.is_connected if storage else False,
            'timestamp': datetime.now().isoformat()
        })

    @app.route('/api/bidders', methods=['GET'])
    def list_bidders():
        """List registered bidder codes."""
        return jsonify({'bidders': manager.registry.codes()})

    @app.route('/api/s2s-config', methods=['GET'])
    def get_s2s_config():
        """Get the active S2S configuration."""
        return jsonify(manager.get_s2s_config().to_dict())

    @app.route('/api/s2s-config', methods=['PUT'])
    def put_s2s_config():
        """Replace the S2S configuration."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'status': 'error', 'message': 'JSON object required'}), 400

        try:
            config = manager.replace_s2s_config(S2SConfig.from_dict(data))
        except ConfigurationError as e:
            return jsonify({'status': 'error', 'message': str(e)}), 400
        except (TypeError, ValueError) as e:
            body, status = _safe_error_response(e, 'Invalid S2S configuration', 400)
            return jsonify(body), status

        persisted = storage.save(config) if storage else False
        return jsonify({
            'status': 'success',
            'config': config.to_dict(),
            'persisted': persisted,
        })

    @app.route('/api/s2s-config', methods=['DELETE'])
    def delete_s2s_config():
        """Disable the S2S path."""
        manager.disable_s2s()
        if storage:
            storage.clear()
        return jsonify({'status': 'success', 'message': 'S2S disabled'})

    @app.route('/api/auctions', methods=['POST'])
    def run_auction():
        """Run an auction for the posted ad units."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'status': 'error', 'message': 'JSON object required'}), 400

        try:
            auction = manager.call_bids(
                ad_units=data.get('adUnits', data.get('ad_units')),
                timeout=data.get('timeout'),
            )
        except InvalidAuctionInputError as e:
            return jsonify({'status': 'error', 'message': str(e)}), 400

        return jsonify({'status': 'success', 'auction': auction.to_dict()})

    return app


def run_admin(host: str = '0.0.0.0', port: int = 5050, debug: bool = False):
    """
    Run the admin API.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 5050)
        debug: Enable debug mode (default: False)
    """
    app = create_app(storage=S2SConfigStorage())
    print(f"\n{'='*60}")
    print("  hbcore Admin API")
    print(f"{'='*60}")
    print(f"  URL: http://localhost:{port}")
    print(f"{'='*60}\n")
    app.run(host=host, port=port, debug=debug)


if __name__ == '__main__':
    run_admin()
