"""Small internal API exposing an endpoint to ingest knocks.

Lets an external packet source (another sensor, a log shipper) post knock
observations over HTTP into the same ingest pipeline used by the capture.
"""
from flask import Flask, jsonify, request

from knockwatch.api.ingest import IngestWorker
from knockwatch.preprocessing.packet_parser import knock_from_packet, normalize_packet


def create_app(worker: IngestWorker) -> Flask:
    app = Flask(__name__)

    @app.route('/ingest', methods=['POST'])
    def ingest_route():
        pkt = request.get_json(silent=True)
        if not pkt or not isinstance(pkt, dict):
            return jsonify({'error': 'no JSON payload'}), 400
        if knock_from_packet(normalize_packet(pkt)) is None:
            return jsonify({'error': 'packet is not a TCP connection attempt with src_ip and dst_port'}), 400
        if not worker.ingest_packet(pkt):
            return jsonify({'error': 'ingest queue full'}), 503
        return jsonify({'status': 'ok'}), 202

    @app.route('/health', methods=['GET'])
    def health_route():
        detector = worker.engine.detector
        tracked = detector.tracked_clients() if hasattr(detector, 'tracked_clients') else None
        return jsonify({
            'status': 'ok',
            'rules': [r.name for r in worker.engine.config.rules],
            'tracked_clients': tracked,
            'dropped': worker.dropped,
        })

    return app
