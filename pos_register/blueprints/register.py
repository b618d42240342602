"""
Register blueprint - JSON routes for the register UI.

Each terminal id gets its own RegisterEngine. Requests for the same terminal
are serialized with a per-terminal lock since the engine is not thread-safe.
"""
import threading

from flask import Blueprint, current_app, jsonify, request

from pos_register.database import get_session
from pos_register.exceptions import NotFoundError, ValidationError
from pos_register.services.engine_factory import build_engine

register_bp = Blueprint('register', __name__, url_prefix='/register')


class EngineRegistry:
    """Holds one engine and lock per terminal for the lifetime of the app."""

    def __init__(self):
        self._engines = {}
        self._creating = {}
        self._guard = threading.Lock()

    def get(self, app, terminal_id):
        with self._guard:
            entry = self._engines.get(terminal_id)
            if entry is not None:
                return entry
            creating = self._creating.setdefault(terminal_id, threading.Lock())

        # build_engine can block on the journal retry budget; hold only this terminal's lock
        with creating:
            with self._guard:
                entry = self._engines.get(terminal_id)
            if entry is not None:
                return entry

            engine = build_engine(app.config, get_session(), terminal_id)
            entry = (engine, threading.Lock())
            with self._guard:
                self._engines[terminal_id] = entry
                self._creating.pop(terminal_id, None)
            app.logger.info(f"[REGISTER] Engine created for terminal {terminal_id}")
            return entry

    def close_all(self):
        with self._guard:
            for engine, lock in self._engines.values():
                with lock:
                    engine.close()
            self._engines.clear()


def init_register(app):
    """Attach the engine registry to the app."""
    app.extensions['register_engines'] = EngineRegistry()


def _run(terminal_id, operation):
    engines = current_app.extensions['register_engines']
    engine, lock = engines.get(current_app._get_current_object(), terminal_id)
    with lock:
        try:
            result = operation(engine)
        except IndexError as e:
            raise NotFoundError(str(e))
    return jsonify(result.to_dict() if hasattr(result, 'to_dict') else result)


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _int_field(data, key, default=None):
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f'"{key}" must be an integer')
    return value


@register_bp.route('/<terminal_id>', methods=['GET'])
def current_transaction(terminal_id):
    """Current ledger and totals."""
    return _run(terminal_id, lambda engine: engine.snapshot())


@register_bp.route('/<terminal_id>/items', methods=['POST'])
def add_item(terminal_id):
    data = _json_body()
    code = data.get('code')
    qty = _int_field(data, 'quantity', 1)
    return _run(terminal_id, lambda engine: engine.add_item(code, qty))


@register_bp.route('/<terminal_id>/items/<int:index>', methods=['DELETE'])
def void_item(terminal_id, index):
    return _run(terminal_id, lambda engine: engine.void_item(index))


@register_bp.route('/<terminal_id>/items/<int:index>', methods=['PATCH'])
def change_quantity(terminal_id, index):
    qty = _int_field(_json_body(), 'quantity')
    return _run(terminal_id, lambda engine: engine.change_quantity(index, qty))


@register_bp.route('/<terminal_id>/suspend', methods=['POST'])
def suspend(terminal_id):
    return _run(terminal_id, lambda engine: engine.suspend())


@register_bp.route('/<terminal_id>/resume/<int:transaction_id>', methods=['POST'])
def resume(terminal_id, transaction_id):
    return _run(terminal_id, lambda engine: engine.resume(transaction_id))


@register_bp.route('/<terminal_id>/void', methods=['POST'])
def void(terminal_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    reason = data.get('reason') or 'Voided by cashier'
    transaction_id = data.get('transaction_id')
    if transaction_id is not None:
        transaction_id = _int_field(data, 'transaction_id')
    return _run(terminal_id, lambda engine: engine.void(reason, transaction_id=transaction_id))


@register_bp.route('/<terminal_id>/complete', methods=['POST'])
def complete(terminal_id):
    data = _json_body()
    return _run(
        terminal_id,
        lambda engine: engine.complete(data.get('payment_type'), data.get('tendered'))
    )


@register_bp.route('/<terminal_id>/suspended', methods=['GET'])
def suspended(terminal_id):
    return _run(terminal_id, lambda engine: {'suspended': engine.list_suspended()})
