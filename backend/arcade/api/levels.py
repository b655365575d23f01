from flask import Blueprint, jsonify, request, current_app
from arcade.services.scratchpad import scratchpad
from arcade.socketio_events import notify

levels = Blueprint('levels', __name__)


@levels.route('', methods=['GET'])
def get_levels():
    return jsonify(scratchpad.snapshot())


@levels.route('', methods=['POST'])
def level_action():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}
    action = body.get('action')
    difficulty = body.get('difficulty')
    obstacles = body.get('obstacles')
    if difficulty is not None and not isinstance(difficulty, str):
        return jsonify({'error': 'difficulty must be a string'}), 400

    if action == 'saveLevel':
        if obstacles is not None and not isinstance(obstacles, list):
            return jsonify({'error': 'obstacles must be a list'}), 400
        # Incomplete saves are ignored rather than rejected; an empty list still replaces
        if difficulty and obstacles is not None:
            scratchpad.save_level(difficulty, obstacles)
    elif action == 'clearLevel':
        if difficulty:
            scratchpad.clear_level(difficulty)
    elif action == 'clearAll':
        scratchpad.clear_all()
    else:
        return jsonify({'error': 'Unknown action'}), 400

    current = scratchpad.snapshot()
    current_app.logger.info(f"[levels] action={action} difficulty={difficulty} keys={len(current)}")
    notify('levels_update', current)
    return jsonify({'success': True, 'levels': current})
