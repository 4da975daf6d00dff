import os

if os.environ.get('ROULETTE_ASYNC_MODE', 'eventlet') == 'eventlet':
    import eventlet
    eventlet.monkey_patch()

import logging
import re

from flask import Flask, render_template_string, request
from flask_socketio import SocketIO, emit

from roulette_engine import DOUBLE_ZERO, Roulette, display, is_number_token, make_wheel

logger = logging.getLogger(__name__)

# --- Configuration ---
app = Flask(__name__)
app.config['SECRET_KEY'] = os.environ.get('ROULETTE_SECRET_KEY', 'a-truly-secret-key-for-roulette')
app.config['ASYNC_MODE'] = os.environ.get('ROULETTE_ASYNC_MODE', 'eventlet')
app.config['HOST'] = os.environ.get('ROULETTE_HOST', '0.0.0.0')
app.config['PORT'] = int(os.environ.get('ROULETTE_PORT', '5000'))
app.config['LOG_LEVEL'] = os.environ.get('ROULETTE_LOG_LEVEL', 'INFO').upper()
_seed = os.environ.get('ROULETTE_SEED')
app.config['ROULETTE_SEED'] = int(_seed) if _seed else None
socketio = SocketIO(app, async_mode=app.config['ASYNC_MODE'])

# One table per connected browser, keyed by Socket.IO sid.
games = {}


# --- Input Parsing ---
class InputError(ValueError):
    """Raw player input that can't be turned into a bankroll, bet or selection."""


def _parse_int(raw, message):
    text = str(raw).strip()
    if not re.fullmatch(r'[+-]?[0-9]+', text):
        raise InputError(message)
    return int(text)


def parse_bankroll(raw):
    message = "Please enter a valid number for bankroll."
    bankroll = _parse_int(raw, message)
    if bankroll < 0:
        raise InputError(message)
    return bankroll


def parse_bet(raw):
    message = "Please enter a valid number for the bet."
    bet = _parse_int(raw, message)
    if bet <= 0:
        raise InputError(message)
    return bet


def parse_selections(raw):
    """Split a comma-separated string into tokens, each '00' or a number 1-36.

    Stops at the first bad token. The count of tokens is left for the table to judge.
    """
    selections = []
    for token in str(raw or '').split(','):
        token = token.strip()
        if token == '00':
            selections.append(token)
        elif is_number_token(token):
            number = int(token)
            if not 1 <= number <= 36:
                raise InputError(f"Invalid number: {number}. Please enter numbers between 1 and 36 or '00'.")
            selections.append(token)
        else:
            raise InputError(f"Invalid input: '{token}'. Only digits and '00' are allowed.")
    return selections


def table_state(game):
    return {
        'bankroll': game.bankroll,
        'spin_count': game.spin_count,
        'history': [display(n) for n in game.spin_history],
    }


# --- Routes & SocketIO Events ---
@app.route('/')
def index():
    return render_template_string(HTML_TEMPLATE, double_zero=DOUBLE_ZERO)

@socketio.on('connect')
def handle_connect():
    logger.info("Player %s connected", request.sid)

@socketio.on('disconnect')
def handle_disconnect(*args):
    if games.pop(request.sid, None) is not None:
        logger.info("Discarded table for %s", request.sid)

@socketio.on('start_game')
def handle_start_game(data):
    try:
        bankroll = parse_bankroll((data or {}).get('bankroll'))
    except InputError as e:
        logger.debug("Rejected bankroll from %s: %s", request.sid, e)
        emit('log', {'lines': [str(e)]})
        return
    game = Roulette(bankroll, wheel=make_wheel(app.config['ROULETTE_SEED']))
    games[request.sid] = game
    logger.info("Player %s started a game with $%d", request.sid, bankroll)
    emit('game_started', {'lines': [f"Game started with bankroll: ${bankroll}"]})
    emit('state', table_state(game))

@socketio.on('play_turn')
def handle_play_turn(data):
    game = games.get(request.sid)
    if game is None:
        emit('log', {'lines': ["Please start the game first."]})
        return
    data = data or {}
    try:
        bet = parse_bet(data.get('bet'))
        selections = parse_selections(data.get('numbers'))
    except InputError as e:
        logger.debug("Rejected turn from %s: %s", request.sid, e)
        emit('log', {'lines': [str(e)]})
        return
    emit('log', {'lines': game.play_turn(bet, selections)})
    emit('state', table_state(game))

@socketio.on('show_summary')
def handle_show_summary(*args):
    game = games.get(request.sid)
    if game is not None:
        emit('log', {'lines': game.show_summary()})

@socketio.on_error_default
def handle_error(e):
    logger.exception("Unhandled error in event %s", request.event["message"])
    emit('error', {'message': "Something went wrong, please try again."})


# --- HTML, CSS, JavaScript Template ---
HTML_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Roulette Game</title>
    <link href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.3/dist/css/bootstrap.min.css" rel="stylesheet">
    <style>
        :root {
            --board-green: #2c6b2f;
            --felt-green: #3a8a40;
            --wood-dark: #3d2a1a;
            --wood-light: #5a3e26;
            --gold: #ffd700;
            --chip-red: #d9534f;
            --num-red: #e74c3c;
            --num-black: #2c3e50;
        }
        body {
            background-color: var(--wood-dark);
            color: white;
            font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
        }
        .game-container {
            display: flex;
            flex-direction: column;
            max-width: 560px;
            margin: 0 auto;
            padding: 20px;
            gap: 12px;
        }
        .panel {
            background: var(--felt-green);
            border: 6px solid var(--wood-light);
            border-radius: 10px;
            padding: 14px;
        }
        .winning-number-display {
            font-size: 2.5rem;
            font-weight: bold;
            color: var(--gold);
            text-align: center;
        }
        .history-bar { display: flex; flex-wrap: wrap; gap: 4px; min-height: 30px; }
        .history-number {
            width: 30px;
            height: 30px;
            display: flex;
            align-items: center;
            justify-content: center;
            border-radius: 5px;
            font-size: 13px;
            font-weight: bold;
        }
        .history-number.red { background-color: var(--num-red); }
        .history-number.black { background-color: var(--num-black); }
        .history-number.green { background-color: var(--board-green); border-radius: 50%; }
        .balance-display { color: var(--gold); font-weight: bold; }
        #output-area {
            background: #1e1e1e;
            color: #e0e0e0;
            font-family: monospace;
            height: 260px;
        }
        .notification {
            position: fixed;
            top: 20px;
            right: 20px;
            padding: 10px 16px;
            border-radius: 6px;
            background: var(--chip-red);
            display: none;
        }
        .notification.show { display: block; }
    </style>
</head>
<body>
    <div class="game-container">
        <div class="panel">
            <label class="form-label" for="bankroll-input">Starting Bankroll:</label>
            <input class="form-control mb-2" id="bankroll-input">
            <button id="start-btn" class="btn btn-warning">Start Game</button>
        </div>

        <div class="panel">
            <label class="form-label" for="bet-input">Bet Amount:</label>
            <input class="form-control mb-2" id="bet-input">
            <label class="form-label" for="numbers-input">Select Numbers (comma-separated) 00; 1-36:</label>
            <input class="form-control mb-2" id="numbers-input">
            <button id="play-turn-btn" class="btn btn-info">Play Turn</button>
            <button id="summary-btn" class="btn btn-light">Show Summary</button>
        </div>

        <div class="panel">
            <div class="d-flex justify-content-between">
                <span>Balance: <span class="balance-display" id="balance-display">--</span></span>
                <span>Spins: <span id="spin-count">0</span></span>
            </div>
            <div class="winning-number-display" id="winning-number-display">--</div>
            <h6>Recent Numbers</h6>
            <div class="history-bar" id="history-bar"></div>
        </div>

        <label class="form-label" for="output-area">Game Output:</label>
        <textarea class="form-control" id="output-area" readonly></textarea>
    </div>

    <div id="notification" class="notification"></div>

    <script src="https://cdn.socket.io/4.7.5/socket.io.min.js"></script>
    <script>
        document.addEventListener('DOMContentLoaded', function() {
            const socket = io();
            const outputArea = document.getElementById('output-area');
            const balanceDisplay = document.getElementById('balance-display');
            const spinCountDisplay = document.getElementById('spin-count');
            const winNumDisplay = document.getElementById('winning-number-display');
            const historyBar = document.getElementById('history-bar');
            const RED_NUMBERS = [1, 3, 5, 7, 9, 12, 14, 16, 18, 19, 21, 23, 25, 27, 30, 32, 34, 36];
            const DOUBLE_ZERO = {{ double_zero }};

            // --- Event Listeners ---
            document.getElementById('start-btn').addEventListener('click', () => {
                socket.emit('start_game', { bankroll: document.getElementById('bankroll-input').value });
            });
            document.getElementById('play-turn-btn').addEventListener('click', () => {
                socket.emit('play_turn', {
                    bet: document.getElementById('bet-input').value,
                    numbers: document.getElementById('numbers-input').value
                });
            });
            document.getElementById('summary-btn').addEventListener('click', () => socket.emit('show_summary'));

            // --- SocketIO Handlers ---
            socket.on('connect', () => console.log('Connected to server'));
            socket.on('game_started', (data) => {
                outputArea.value = '';
                historyBar.innerHTML = '';
                winNumDisplay.textContent = '--';
                appendLines(data.lines);
            });
            socket.on('log', (data) => appendLines(data.lines));
            socket.on('state', (data) => {
                balanceDisplay.textContent = `$${data.bankroll}`;
                spinCountDisplay.textContent = data.spin_count;
                if (data.history.length > 0) {
                    winNumDisplay.textContent = data.history[data.history.length - 1];
                }
                updateHistory(data.history);
            });
            socket.on('error', (data) => showNotification(data.message));

            // --- UI Helper Functions ---
            function appendLines(lines) {
                lines.forEach(line => { outputArea.value += line + '\\n'; });
                outputArea.scrollTop = outputArea.scrollHeight;
            }
            function showNotification(message) {
                const notification = document.getElementById('notification');
                notification.textContent = message;
                notification.className = 'notification show';
                setTimeout(() => {
                    notification.classList.remove('show');
                }, 3000);
            }
            function updateHistory(history) {
                historyBar.innerHTML = '';
                history.slice(-15).reverse().forEach(shown => {
                    const num = shown === '00' ? DOUBLE_ZERO : parseInt(shown);
                    const el = document.createElement('div');
                    el.classList.add('history-number');
                    el.textContent = shown;
                    if (num === 0 || num === DOUBLE_ZERO) el.classList.add('green');
                    else if (RED_NUMBERS.includes(num)) el.classList.add('red');
                    else el.classList.add('black');
                    historyBar.appendChild(el);
                });
            }
        });
    </script>
</body>
</html>
"""


# --- Main Execution ---
def main():
    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    logger.info("Starting Flask Roulette server on http://%s:%d", app.config['HOST'], app.config['PORT'])
    socketio.run(app, host=app.config['HOST'], port=app.config['PORT'])


if __name__ == '__main__':
    main()
