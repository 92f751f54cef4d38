"""Zone (purok) lookup routes used by the request forms."""
from flask import Blueprint, jsonify

from apps.api.utils.db_retry import with_db_retry
from apps.api.utils.request_store import get_zone, list_zones


zones_bp = Blueprint('zones', __name__, url_prefix='/api/zones')


@zones_bp.route('', methods=['GET'])
@with_db_retry(max_retries=2, initial_delay=0.5)
def list_all_zones():
    zones = list_zones()
    return jsonify({
        'zones': [z.to_dict() for z in zones],
        'count': len(zones),
    }), 200


@zones_bp.route('/<int:zone_id>', methods=['GET'])
@with_db_retry(max_retries=2, initial_delay=0.5)
def get_single_zone(zone_id):
    zone = get_zone(zone_id)
    if not zone:
        return jsonify({'error': 'Zone not found'}), 404
    return jsonify({'zone': zone.to_dict()}), 200
