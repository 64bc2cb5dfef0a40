#!/usr/bin/env python3
"""
NetSight - Network Topology Dashboard
Backend server: topology, inventory, alerts, monitoring, discovery jobs, and live updates.
"""

import functools
import logging
import random
import sqlite3
import threading
from dataclasses import asdict
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_socketio import SocketIO, emit, join_room

from config import settings
from constants import DEVICE_TYPES, LAYOUT_TYPES, SCAN_PROFILES
from errors import NetSightError, NotFoundError, TopologyValidationError
from events import EventBus
from mock_data import (
    generate_inventory_topology,
    generate_mock_alerts,
    generate_mock_data,
    generate_mock_monitoring_data,
    generate_mock_network_data,
)
from mock_users import filter_users, generate_mock_user_management_data
from models import DataPipelineConfig, NetworkTopology, TopologyFilter, connection_from_dict, device_from_dict
from pipeline import DataPipeline
from privilege import PrivilegeManager
from services.jobs import ScanJobManager
from services.refresh_daemon import RefreshDaemon
from services.scan_service import run_profile_scan
from state import TopologyState
from store import DataStore
from topology import compute_layout, connected_components, critical_devices, filter_topology, to_cytoscape, trace_path
from toolkit.utils import ensure_private_target

logger = logging.getLogger("netsight.server")

VERSION = "0.3.0"
TOPOLOGY_ROOM = "topology"
GENERATORS = ("campus", "dashboard", "inventory")

app = Flask(__name__)
CORS(app)
socketio = SocketIO(app, cors_allowed_origins="*", async_mode='threading')
API_KEY = settings.api_key

# In-process event bus + bounded buffer for UI polling.
event_bus = EventBus(max_events=2000)
datastore = DataStore(settings.db_path)
state = TopologyState(stale_after_seconds=settings.stale_after_seconds)
privilege_manager = PrivilegeManager()
pipeline = DataPipeline(
    DataPipelineConfig(enable_real_data_collection=settings.enable_live_collection),
    privilege_manager=privilege_manager,
)
scan_jobs = ScanJobManager(
    datastore,
    state,
    functools.partial(run_profile_scan, event_bus=event_bus),
    default_target=state.discovery_config.ip_ranges[0],
)
refresh_daemon = RefreshDaemon(
    state,
    lambda event, payload: socketio.emit(event, payload, to=TOPOLOGY_ROOM),
    interval_seconds=settings.refresh_interval_seconds,
)

# Lazily generated mock payloads (monitoring series, inventory, user management).
# monitoring_data is valid for monitoring_key = (state revision, points).
monitoring_data = None
monitoring_key: Optional[tuple] = None
inventory_topology: Optional[NetworkTopology] = None
user_data: Optional[dict] = None


@app.before_request
def enforce_optional_api_key():
    """Optional API key guard. Disabled when NETSIGHT_API_KEY is unset."""
    if not API_KEY:
        return None
    if request.path == "/api/status":
        return None
    provided = request.headers.get("X-API-Key", "")
    if provided != API_KEY:
        return jsonify({"error": "Unauthorized"}), 401
    return None


@app.errorhandler(NetSightError)
def handle_netsight_error(exc):
    body = {"error": str(exc)}
    if isinstance(exc, TopologyValidationError):
        body["violations"] = exc.violations
    return jsonify(body), exc.status_code


def _int_arg(name: str, default: int, lo: int = 1, hi: int = 200) -> int:
    try:
        value = int(request.args.get(name, default))
    except (TypeError, ValueError):
        value = default
    return max(lo, min(hi, value))


def _bool_arg(name: str) -> Optional[bool]:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _list_arg(name: str) -> list:
    raw = request.args.get(name, "")
    return [v.strip() for v in raw.split(",") if v.strip()]


def _topology_json(topology: NetworkTopology) -> dict:
    data = asdict(topology)
    data["source"] = state.source
    return data


def _broadcast_topology(reason: str) -> None:
    snap = state.snapshot()
    socketio.emit(
        "topology_update",
        {
            "reason": reason,
            "source": state.source,
            "last_updated": snap.last_updated,
            "stats": asdict(snap.discovery_stats),
            "staleness": state.staleness(),
        },
        to=TOPOLOGY_ROOM,
    )


def _forward_discovery_event(ev):
    if ev.type.startswith("discovery."):
        socketio.emit("discovery_event", asdict(ev), to=TOPOLOGY_ROOM)


event_bus.subscribe(_forward_discovery_event)


def _persisting(mutation, audit_action: str, entity: str, details: Optional[dict] = None):
    """Apply a state mutation optimistically; roll it back if the audit write fails."""
    token, result = state.optimistic(mutation)
    try:
        datastore.add_audit_entry(audit_action, actor="api", entity=entity, details=details or {})
    except sqlite3.Error:
        state.rollback(token)
        logger.exception("persisting %s for %s failed, change rolled back", audit_action, entity)
        raise
    state.commit(token)
    return result


# -----------------------------
# Status
# -----------------------------


@app.route('/api/status', methods=['GET'])
def get_status():
    """Get system status"""
    snap = state.snapshot()
    return jsonify({
        'service': 'netsight',
        'version': VERSION,
        'api_key_enabled': bool(API_KEY),
        'scan_profiles': list(SCAN_PROFILES.keys()),
        'layout_types': list(LAYOUT_TYPES),
        'db_path': str(datastore.db_path),
        'topology': {
            'source': state.source,
            'devices': len(snap.devices),
            'connections': len(snap.connections),
            'last_updated': snap.last_updated,
        },
        'staleness': state.staleness(),
        'discovering': state.is_discovering,
        'discovery_progress': state.discovery_progress,
        'pipeline': pipeline.get_data_readiness_status(),
        'elevated': privilege_manager.is_elevated(),
        'refresh_daemon': refresh_daemon.status(),
    })


@app.route('/api/events', methods=['GET'])
def list_events():
    """Recent bus events (discovery progress, devices, connections)."""
    limit = _int_arg('limit', 200, 1, 2000)
    return jsonify({'events': event_bus.list_events(limit=limit, event_type=request.args.get('type', ''))})


# -----------------------------
# Topology
# -----------------------------


@app.route('/api/topology', methods=['GET'])
def get_topology():
    """Current topology snapshot; ?filtered=1 applies the stored filters."""
    topology = state.snapshot()
    if _bool_arg('filtered'):
        topology = filter_topology(topology, state.filters)
    data = _topology_json(topology)
    data['staleness'] = state.staleness()
    return jsonify(data)


def build_topology(kind: str, rng: random.Random) -> dict:
    """Generate a mock topology bundle of the given kind."""
    global inventory_topology
    if kind == "dashboard":
        return generate_mock_data(rng)
    if kind == "inventory":
        topology = generate_inventory_topology(rng)
        inventory_topology = topology
    else:
        topology = generate_mock_network_data(rng)
    alerts = generate_mock_alerts(rng, device_ids=[d.id for d in topology.devices])
    return {"topology": topology, "alerts": alerts}


def generate_demo_data(kind: str = "campus", seed: Optional[int] = None) -> dict:
    """Load a generated topology, its alerts, and a snapshot row."""
    global monitoring_data, monitoring_key
    rng = random.Random(seed)
    bundle = build_topology(kind, rng)
    topology = bundle["topology"]
    state.set_topology(topology, source="mock-data")
    if bundle.get("monitoring") is not None:
        monitoring_data = bundle["monitoring"]
        monitoring_key = (state.revision, len(monitoring_data.network["latency"]))
    datastore.replace_alerts(bundle["alerts"])
    snapshot_id = datastore.save_snapshot(topology, f"mock-data:{kind}", is_live=False)
    logger.info("demo data loaded: %s (%d devices)", kind, len(topology.devices))
    return {
        'kind': kind,
        'snapshot_id': snapshot_id,
        'devices': len(topology.devices),
        'connections': len(topology.connections),
        'alerts': len(bundle["alerts"]),
    }


@app.route('/api/topology/generate', methods=['POST'])
def generate_topology():
    """Replace the live topology with generated mock data."""
    data = request.get_json(silent=True) or {}
    kind = (data.get('kind') or 'campus').lower()
    if kind not in GENERATORS:
        return jsonify({'error': f'Invalid generator: {kind}'}), 400
    seed = data.get('seed')
    if seed is not None and not isinstance(seed, int):
        return jsonify({'error': 'seed must be an integer'}), 400
    summary = generate_demo_data(kind, seed)
    _broadcast_topology("generated")
    return jsonify(summary), 201


@app.route('/api/topology/stats', methods=['GET'])
def get_topology_stats():
    topology = state.snapshot()
    stats = asdict(topology.discovery_stats)
    stats['components'] = len(connected_components(topology))
    stats['critical_devices'] = critical_devices(topology, top=_int_arg('top', 5, 1, 50))
    return jsonify(stats)


@app.route('/api/topology/staleness', methods=['GET'])
def get_topology_staleness():
    return jsonify(state.staleness())


@app.route('/api/topology/layout', methods=['GET'])
def get_topology_layout():
    """Positions for the requested layout (hierarchical, force, circular, grid, custom)."""
    layout_type = request.args.get('type', state.layout_type)
    if layout_type not in LAYOUT_TYPES:
        return jsonify({'error': f'Invalid layout type: {layout_type}'}), 400
    width = _int_arg('width', 1000, 200, 10000)
    height = _int_arg('height', 800, 200, 10000)
    positions = compute_layout(state.snapshot(), layout_type, width=width, height=height)
    state.set_layout_type(layout_type)
    return jsonify({'type': layout_type, 'width': width, 'height': height, 'positions': positions})


@app.route('/api/topology/cytoscape', methods=['GET'])
def get_topology_cytoscape():
    topology = state.snapshot()
    if _bool_arg('filtered'):
        topology = filter_topology(topology, state.filters)
    layout_type = request.args.get('layout')
    positions = None
    if layout_type:
        if layout_type not in LAYOUT_TYPES:
            return jsonify({'error': f'Invalid layout type: {layout_type}'}), 400
        positions = compute_layout(topology, layout_type)
    return jsonify(to_cytoscape(topology, positions))


@app.route('/api/topology/trace', methods=['POST'])
def trace_topology_path():
    """Breadth-first path trace between two device ids."""
    data = request.get_json(silent=True) or {}
    source = str(data.get('source') or '').strip()
    target = str(data.get('target') or '').strip()
    if not source or not target:
        return jsonify({'error': 'source and target are required'}), 400
    trace = trace_path(state.snapshot(), source, target)
    state.set_path_trace(trace)
    return jsonify(asdict(trace))


@app.route('/api/topology/filters', methods=['GET', 'POST'])
def topology_filters():
    """Read or merge the stored view filters; {"reset": true} restores defaults."""
    if request.method == 'POST':
        data = request.get_json(silent=True) or {}
        if data.pop('reset', False):
            state.reset_filters()
        if data:
            try:
                state.set_filters(data)
            except ValueError as exc:
                return jsonify({'error': str(exc)}), 400
    filters = state.filters
    visible = filter_topology(state.snapshot(), filters)
    return jsonify({
        'filters': asdict(filters),
        'visible_devices': len(visible.devices),
        'visible_connections': len(visible.connections),
    })


@app.route('/api/topology/snapshots', methods=['GET'])
def list_topology_snapshots():
    return jsonify({'snapshots': datastore.list_snapshots(limit=_int_arg('limit', 20))})


def restore_snapshot(snapshot_id: Optional[int] = None) -> Optional[dict]:
    """Load a stored snapshot (latest when no id) into the live state; None when absent."""
    topology = datastore.load_snapshot(snapshot_id)
    if topology is None:
        return None
    label = snapshot_id if snapshot_id is not None else "latest"
    state.set_topology(topology, source=f"snapshot:{label}")
    return {'snapshot_id': snapshot_id, 'devices': len(topology.devices), 'connections': len(topology.connections)}


@app.route('/api/topology/selection', methods=['GET', 'POST'])
def topology_selection():
    """Selected device for the detail panel; POST {"device_id": null} clears it."""
    if request.method == 'POST':
        data = request.get_json(silent=True) or {}
        state.select_device(data.get('device_id'))
    return jsonify({'selected_device_id': state.selected_device_id})


@app.route('/api/topology/realtime', methods=['POST'])
def set_realtime_updates():
    data = request.get_json(silent=True) or {}
    state.real_time_updates = bool(data.get('enabled', True))
    return jsonify({'real_time_updates': state.real_time_updates})


@app.route('/api/discovery/config', methods=['GET', 'POST'])
def discovery_config():
    """Read or merge the discovery config used as the base for scan jobs."""
    if request.method == 'GET':
        return jsonify(asdict(state.discovery_config))
    data = request.get_json(silent=True) or {}
    for cidr in data.get('ip_ranges') or []:
        try:
            ensure_private_target(cidr)
        except ValueError as exc:
            return jsonify({'error': str(exc)}), 400
    try:
        cfg = state.update_discovery_config(data)
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    return jsonify(asdict(cfg))


@app.route('/api/topology/snapshots/<int:snapshot_id>/restore', methods=['POST'])
def restore_topology_snapshot(snapshot_id):
    summary = restore_snapshot(snapshot_id)
    if summary is None:
        raise NotFoundError("Snapshot not found")
    _broadcast_topology("restored")
    return jsonify(summary)


# -----------------------------
# Devices / inventory
# -----------------------------


@app.route('/api/devices', methods=['GET'])
def get_devices():
    """Devices of the live topology with optional type/status/location/search filters."""
    filt = TopologyFilter(
        device_types=_list_arg('type'),
        statuses=_list_arg('status'),
        locations=_list_arg('location'),
        search_term=request.args.get('search', ''),
    )
    devices = filter_topology(state.snapshot(), filt).devices
    return jsonify({'devices': [asdict(d) for d in devices], 'count': len(devices)})


@app.route('/api/devices/<device_id>', methods=['GET'])
def get_device(device_id):
    device = state.get_device(device_id)
    links = [asdict(c) for c in state.snapshot().connections if device_id in (c.source, c.target)]
    return jsonify({**asdict(device), 'connections': links})


@app.route('/api/devices', methods=['POST'])
def create_device():
    data = request.get_json(silent=True) or {}
    if not data.get('id') or not data.get('hostname'):
        return jsonify({'error': 'id and hostname are required'}), 400
    if data.get('type') and data['type'] not in DEVICE_TYPES:
        return jsonify({'error': f"Invalid device type: {data['type']}"}), 400
    if data['id'] in state.snapshot().device_index():
        return jsonify({'error': f"Device already exists: {data['id']}"}), 409
    try:
        device = device_from_dict(data)
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    created = _persisting(lambda s: s.add_device(device), 'device.created', device.id)
    _broadcast_topology("device.created")
    return jsonify(asdict(created)), 201


@app.route('/api/devices/<device_id>', methods=['PUT'])
def update_device(device_id):
    data = request.get_json(silent=True) or {}
    if data.get('type') and data['type'] not in DEVICE_TYPES:
        return jsonify({'error': f"Invalid device type: {data['type']}"}), 400
    state.get_device(device_id)
    try:
        updated = _persisting(
            lambda s: s.update_device(device_id, data),
            'device.updated',
            device_id,
            {'fields': sorted(data)},
        )
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    _broadcast_topology("device.updated")
    return jsonify(asdict(updated))


@app.route('/api/devices/<device_id>', methods=['DELETE'])
def delete_device(device_id):
    state.get_device(device_id)
    removed = _persisting(lambda s: s.remove_device(device_id), 'device.deleted', device_id)
    _broadcast_topology("device.deleted")
    return jsonify({'deleted': device_id, 'connections_removed': removed})


@app.route('/api/devices/<device_id>/position', methods=['PUT'])
def set_device_position(device_id):
    """Pin a device on the canvas; used by the custom layout."""
    data = request.get_json(silent=True) or {}
    try:
        x, y = float(data['x']), float(data['y'])
    except (KeyError, TypeError, ValueError):
        return jsonify({'error': 'x and y must be numbers'}), 400
    state.update_device_position(device_id, x, y)
    return jsonify({'id': device_id, 'position': {'x': x, 'y': y}})


@app.route('/api/connections', methods=['POST'])
def create_connection():
    data = request.get_json(silent=True) or {}
    if not all(data.get(k) for k in ('id', 'source', 'target')):
        return jsonify({'error': 'id, source and target are required'}), 400
    connection = connection_from_dict(data)
    created = _persisting(lambda s: s.add_connection(connection), 'connection.created', connection.id)
    _broadcast_topology("connection.created")
    return jsonify(asdict(created)), 201


@app.route('/api/connections/<connection_id>', methods=['PUT'])
def update_connection(connection_id):
    data = request.get_json(silent=True) or {}
    updated = _persisting(
        lambda s: s.update_connection(connection_id, data),
        'connection.updated',
        connection_id,
        {'fields': sorted(data)},
    )
    _broadcast_topology("connection.updated")
    return jsonify(asdict(updated))


@app.route('/api/connections/<connection_id>', methods=['DELETE'])
def delete_connection(connection_id):
    _persisting(lambda s: s.remove_connection(connection_id), 'connection.deleted', connection_id)
    _broadcast_topology("connection.deleted")
    return jsonify({'deleted': connection_id})


@app.route('/api/inventory', methods=['GET'])
def get_inventory():
    """The generated 153-device inventory (hierarchically wired)."""
    global inventory_topology
    if inventory_topology is None:
        inventory_topology = generate_inventory_topology()
    filt = TopologyFilter(device_types=_list_arg('type'), search_term=request.args.get('search', ''))
    view = filter_topology(inventory_topology, filt)
    return jsonify({
        'devices': [asdict(d) for d in view.devices],
        'count': len(view.devices),
        'connections': len(view.connections),
        'stats': asdict(inventory_topology.discovery_stats),
    })


# -----------------------------
# Alerts / monitoring
# -----------------------------


@app.route('/api/alerts', methods=['GET'])
def get_alerts():
    alerts = datastore.list_alerts(
        limit=_int_arg('limit', 100, 1, 1000),
        severity=request.args.get('severity', ''),
        category=request.args.get('category', ''),
        acknowledged=_bool_arg('acknowledged'),
        resolved=_bool_arg('resolved'),
    )
    return jsonify({'alerts': alerts, 'count': len(alerts)})


def _set_alert(alert_id: str, action: str, **flags):
    if not datastore.set_alert_flags(alert_id, **flags):
        raise NotFoundError('Alert not found')
    datastore.add_audit_entry(f'alert.{action}', actor='api', entity=alert_id, details=flags)
    alert = datastore.get_alert(alert_id)
    socketio.emit('alert_update', alert, to=TOPOLOGY_ROOM)
    return jsonify(alert)


@app.route('/api/alerts/<alert_id>/acknowledge', methods=['POST'])
def acknowledge_alert(alert_id):
    data = request.get_json(silent=True) or {}
    return _set_alert(alert_id, 'acknowledged', acknowledged=True, assignee=data.get('assignee'))


@app.route('/api/alerts/<alert_id>/resolve', methods=['POST'])
def resolve_alert(alert_id):
    return _set_alert(alert_id, 'resolved', acknowledged=True, resolved=True)


@app.route('/api/monitoring', methods=['GET'])
def get_monitoring():
    """Time-series monitoring for the live topology, regenerated whenever it changes."""
    global monitoring_data, monitoring_key
    points = _int_arg('points', 60, 1, 1440)
    key = (state.revision, points)
    if monitoring_data is None or monitoring_key != key:
        monitoring_data = generate_mock_monitoring_data(state.snapshot().devices, points=points)
        monitoring_key = key
    data = asdict(monitoring_data)
    device_id = request.args.get('device')
    if device_id:
        if device_id not in data['devices']:
            return jsonify({'error': 'Device not found'}), 404
        data['devices'] = {device_id: data['devices'][device_id]}
    return jsonify(data)


# -----------------------------
# Scan jobs
# -----------------------------


@app.route('/api/scan/jobs', methods=['POST'])
def start_scan_job():
    """Start an asynchronous discovery job."""
    data = request.get_json(silent=True) or {}
    profile = (data.get('profile') or 'standard').lower()
    target = data.get('network')
    if profile not in SCAN_PROFILES:
        return jsonify({'error': f'Invalid profile: {profile}'}), 400
    if target:
        try:
            ensure_private_target(target)
        except ValueError as exc:
            return jsonify({'error': str(exc)}), 400
    job_id = scan_jobs.start(profile, target)
    return jsonify({
        'job_id': job_id,
        'status': 'queued',
        'profile': profile,
        'target': target or state.discovery_config.ip_ranges[0],
    }), 202


@app.route('/api/scan/jobs', methods=['GET'])
def list_scan_jobs():
    """List recent scan jobs."""
    return jsonify({'jobs': datastore.list_scan_jobs(limit=_int_arg('limit', 20))})


@app.route('/api/scan/jobs/<job_id>', methods=['GET'])
def get_scan_job(job_id):
    """Get scan job details."""
    job = datastore.get_scan_job(job_id)
    if not job:
        return jsonify({'error': 'Job not found'}), 404
    return jsonify(job)


# -----------------------------
# Data pipeline / privileges
# -----------------------------


@app.route('/api/pipeline/status', methods=['GET'])
def get_pipeline_status():
    return jsonify({
        'readiness': pipeline.get_data_readiness_status(),
        'all_live': pipeline.all_modules_have_live_data(),
        'modules': {name: asdict(s) for name, s in pipeline.get_module_states().items()},
        'config': asdict(pipeline.get_config()),
        'scanning': pipeline.is_scanning,
        'periodic_running': pipeline.periodic_running,
    })


def run_pipeline_collection() -> dict:
    """Collect once and load whatever topology the pipeline hands back."""
    pipeline.start_data_collection()
    data = pipeline.get_topology_data()
    topology = data['topology']
    state.set_topology(topology, source=data['source'])
    datastore.save_snapshot(topology, data['source'], is_live=data['is_live_data'])
    _broadcast_topology("pipeline")
    return {'source': data['source'], 'is_live_data': data['is_live_data'], 'devices': len(topology.devices)}


@app.route('/api/pipeline/start', methods=['POST'])
def start_pipeline():
    data = request.get_json(silent=True) or {}
    if data:
        pipeline.update_config(data)
    threading.Thread(target=run_pipeline_collection, name="pipeline-start", daemon=True).start()
    return jsonify({'status': 'starting', 'config': asdict(pipeline.get_config())}), 202


@app.route('/api/pipeline/stop', methods=['POST'])
def stop_pipeline():
    pipeline.stop_data_collection()
    return jsonify({'status': 'stopped'})


@app.route('/api/privilege/elevate', methods=['POST'])
def elevate_privileges():
    data = request.get_json(silent=True) or {}
    reason = str(data.get('reason') or 'Network discovery requires elevated privileges')
    granted = pipeline.request_privilege_elevation(reason)
    status = privilege_manager.get_elevation_status()
    datastore.add_audit_entry('privilege.elevate', actor='api', details={'granted': granted})
    return jsonify({'granted': granted, 'elevation': asdict(status) if status else None})


# -----------------------------
# Users
# -----------------------------


def _user_data() -> dict:
    global user_data
    if user_data is None:
        user_data = generate_mock_user_management_data()
    return user_data


@app.route('/api/users', methods=['GET'])
def list_users():
    page = _int_arg('page', 1, 1, 10000)
    page_size = _int_arg('page_size', 25, 1, 200)
    items, total = filter_users(
        _user_data()['users'],
        role=request.args.get('role', ''),
        status=request.args.get('status', ''),
        membership=request.args.get('membership', ''),
        search=request.args.get('search', ''),
        sort_by=request.args.get('sort_by', 'last_name'),
        descending=request.args.get('order', 'asc').lower() == 'desc',
        page=page,
        page_size=page_size,
    )
    return jsonify({'users': [asdict(u) for u in items], 'total': total, 'page': page, 'page_size': page_size})


@app.route('/api/users/audit', methods=['GET'])
def list_user_audit():
    logs = _user_data()['audit_logs'][: _int_arg('limit', 50, 1, 500)]
    return jsonify({'audit_logs': [asdict(entry) for entry in logs], 'count': len(logs)})


# -----------------------------
# Socket.IO
# -----------------------------


@socketio.on('connect')
def handle_connect():
    """Handle client connection"""
    emit('status', {
        'connected': True,
        'discovering': state.is_discovering,
        'source': state.source,
    })


@socketio.on('subscribe_topology')
def handle_subscribe_topology():
    """Join the topology room for topology_update / discovery_event broadcasts."""
    join_room(TOPOLOGY_ROOM)
    snap = state.snapshot()
    emit('topology_update', {
        'reason': 'subscribed',
        'source': state.source,
        'last_updated': snap.last_updated,
        'stats': asdict(snap.discovery_stats),
        'staleness': state.staleness(),
    })


if __name__ == '__main__':
    import argparse
    parser = argparse.ArgumentParser(description='NetSight - Network Topology Server')
    parser.add_argument('--host', default='0.0.0.0', help='Host to bind to')
    parser.add_argument('--port', type=int, default=5001, help='Port to bind to')
    parser.add_argument('--demo', action='store_true', help='Load demo data on startup')
    args = parser.parse_args()

    if args.demo:
        generate_demo_data()
        print("Demo data loaded")

    print(f"Starting NetSight server on {args.host}:{args.port}")
    refresh_daemon.start()
    socketio.run(
        app,
        host=args.host,
        port=args.port,
        debug=settings.debug,
        allow_unsafe_werkzeug=settings.debug,
    )
