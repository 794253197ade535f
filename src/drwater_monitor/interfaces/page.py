"""Server-rendered dashboard page. Live updates arrive as view JSON over SSE."""

import html
from typing import Optional

from drwater_monitor.infra.config import AuthConfig

PAGE_TITLE = "Dr. Water - Live System Monitor"

STYLE = """
:root {
  --accent-color: #007AFF; --glass-bg: rgba(255, 255, 255, 0.6); --text-color: #1d1d1f;
  --text-secondary: #6e6e73; --border-color: rgba(0, 0, 0, 0.1);
  --status-ok: #34C759; --status-warning: #FF9500; --status-replace: #FF3B30;
}
body {
  font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Helvetica, Arial, sans-serif;
  background: linear-gradient(135deg, #f0f2f5, #d6e0f0); margin: 0; padding: 2rem;
  color: var(--text-color); box-sizing: border-box; min-height: 100vh;
}
.container { max-width: 1000px; margin: 0 auto; display: flex; flex-direction: column; gap: 2rem; }
.glass-card { background: var(--glass-bg); border-radius: 20px; border: 1px solid var(--border-color); padding: 1.5rem 2rem; }
.header { display: flex; justify-content: space-between; align-items: center; gap: 1rem; }
.header h1 { font-size: 1.75rem; margin: 0; }
.controls { display: flex; align-items: center; gap: 1rem; }
button { font-size: 0.9rem; font-weight: 500; padding: 0.6rem 1.2rem; border-radius: 10px; border: none; cursor: pointer; }
.admin-btn { background-color: #e5e5e7; color: var(--text-color); }
.danger-btn { background-color: var(--status-replace); color: white; }
.connect-btn { background: var(--accent-color); color: white; }
.status-indicator { width: 10px; height: 10px; border-radius: 50%; display: inline-block; }
.status-indicator.disconnected { background-color: var(--status-replace); }
.status-indicator.connected { background-color: var(--status-ok); }
.main-metrics { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 1.5rem; }
.metric-item { display: flex; flex-direction: column; gap: 0.5rem; }
.metric-item .label { font-size: 0.9rem; color: var(--text-secondary); }
.metric-item .value { font-size: 2.25rem; font-weight: 600; }
.cartridges-grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(280px, 1fr)); gap: 1.5rem; }
.cartridge-card { background: rgba(255, 255, 255, 0.8); border-radius: 15px; padding: 1.25rem; display: flex; flex-direction: column; gap: 1rem; }
.cartridge-header, .cartridge-stats { display: flex; justify-content: space-between; align-items: center; }
.cartridge-stats { font-size: 0.85rem; color: var(--text-secondary); }
.status-badge { font-size: 0.8rem; font-weight: 600; padding: 0.3rem 0.7rem; border-radius: 20px; color: white; }
.status-ok { background-color: var(--status-ok); }
.status-warning { background-color: var(--status-warning); }
.status-replace { background-color: var(--status-replace); }
.progress-bar-container { width: 100%; height: 8px; background-color: #e9ecef; border-radius: 4px; overflow: hidden; }
.progress-bar { height: 100%; background-color: var(--status-ok); transition: width 0.5s ease; }
.modal-overlay { position: fixed; inset: 0; background-color: rgba(0,0,0,0.4); display: none; justify-content: center; align-items: center; }
.modal-overlay.visible { display: flex; }
.modal-content { background: white; border-radius: 20px; padding: 2rem; width: 90%; max-width: 400px; }
.form-group { margin-bottom: 1rem; }
.form-group label { display: block; margin-bottom: 0.5rem; color: var(--text-secondary); }
.form-group input { width: 100%; padding: 0.75rem; border: 1px solid var(--border-color); border-radius: 10px; box-sizing: border-box; }
.modal-actions { display: flex; justify-content: flex-end; gap: 1rem; }
.login-error { color: var(--status-replace); text-align: center; display: none; }
.admin-controls { display: none; flex-direction: column; gap: 1rem; }
.admin-controls.visible { display: flex; }
.admin-actions { display: flex; flex-wrap: wrap; gap: 1rem; align-items: center; }
.admin-actions input { padding: 0.6rem; border: 1px solid var(--border-color); border-radius: 10px; width: 100px; }
"""

SCRIPT = """
const SESSION = document.body.dataset.session;
const $ = (id) => document.getElementById(id);

function applyView(view) {
  $('connectionStatus').className = view.connection_class;
  for (const [key, metric] of Object.entries(view.metrics)) {
    $('metric-' + key).textContent = metric.text;
  }
  for (const card of view.cartridges) {
    const i = card.index;
    $('status-' + i).textContent = card.badge_text;
    $('status-' + i).className = card.badge_class;
    $('progress-' + i).style.backgroundColor = card.bar_color;
    $('progress-' + i).style.width = card.width_css;
    $('used-' + i).textContent = card.used_text;
    $('remaining-' + i).textContent = card.remaining_text;
  }
}

async function postJson(path, body) {
  const response = await fetch(path, {
    method: 'POST',
    headers: {'Content-Type': 'application/json'},
    body: JSON.stringify(Object.assign({session: SESSION}, body)),
  });
  let data = {};
  try { data = await response.json(); } catch (err) { data = {detail: response.statusText}; }
  return {ok: response.ok, status: response.status, message: data.message || data.detail || ''};
}

// Resolves to the HTTP status, or 0 when the request never completed.
async function sendCommand(path, body) {
  try {
    const result = await postJson(path, body);
    alert(result.message);
    return result.status;
  } catch (err) {
    console.error('Error sending command:', err);
    alert('Failed to send command. Check connection.');
    return 0;
  }
}

$('adminBtn').addEventListener('click', () => $('loginModal').classList.add('visible'));
$('cancelLoginBtn').addEventListener('click', () => $('loginModal').classList.remove('visible'));
$('submitLoginBtn').addEventListener('click', async () => {
  const result = await postJson('/session/login', {user: $('userId').value, password: $('password').value});
  if (result.ok) {
    $('loginModal').classList.remove('visible');
    $('adminControls').classList.add('visible');
    $('adminBtn').style.display = 'none';
    $('loginError').style.display = 'none';
  } else {
    $('loginError').style.display = 'block';
  }
});
$('hardResetBtn').addEventListener('click', () => sendCommand('/command/hard_reset', {}));
$('cartridgeResetBtn').addEventListener('click', async () => {
  const status = await sendCommand('/command/cartridge', {cartridge: $('cartridgeResetInput').value});
  // 400 means the number was rejected locally; keep it for correction.
  if (status !== 400) {
    $('cartridgeResetInput').value = '';
  }
});

const events = new EventSource('/events/sse');
events.onmessage = (event) => applyView(JSON.parse(event.data));
events.onerror = () => { $('connectionStatus').className = 'status-indicator disconnected'; };
"""


def _e(value) -> str:
    return html.escape(str(value), quote=True)


def _metric(key: str, metric: dict) -> str:
    return (
        '<div class="metric-item">'
        f'<span class="label">{_e(metric["label"])}</span>'
        f'<span class="value" id="metric-{_e(key)}">{_e(metric["text"])}</span>'
        "</div>"
    )


def _card(card: dict) -> str:
    i = card["index"]
    style = f'width: {_e(card["width_css"])};'
    if card["bar_color"]:
        style += f' background-color: {_e(card["bar_color"])};'
    return f"""
<div class="cartridge-card">
  <div class="cartridge-header">
    <span class="cartridge-title">{_e(card["title"])}</span>
    <span class="{_e(card["badge_class"])}" id="status-{i}">{_e(card["badge_text"])}</span>
  </div>
  <div class="progress-bar-container"><div class="progress-bar" id="progress-{i}" style="{style}"></div></div>
  <div class="cartridge-stats">
    <span id="used-{i}">{_e(card["used_text"])}</span>
    <span id="remaining-{i}">{_e(card["remaining_text"])}</span>
  </div>
</div>"""


def render_page(view: dict, session_id: str, auth: Optional[AuthConfig] = None, title: str = PAGE_TITLE) -> str:
    prefill_user = prefill_pass = ""
    if auth is not None and auth.prefill_credentials:
        prefill_user, prefill_pass = auth.user_id, auth.password

    metrics = "".join(_metric(key, metric) for key, metric in view["metrics"].items())
    cards = "".join(_card(card) for card in view["cartridges"])
    count = len(view["cartridges"])

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{_e(title)}</title>
<style>{STYLE}</style>
</head>
<body data-session="{_e(session_id)}">
<div class="container">
  <div class="glass-card header">
    <h1>Dr. Water Live Monitor</h1>
    <div class="controls">
      <span id="connectionStatus" class="{_e(view["connection_class"])}"></span>
      <button id="adminBtn" class="admin-btn">Admin Login</button>
    </div>
  </div>
  <div class="glass-card main-metrics">{metrics}</div>
  <div class="glass-card admin-controls" id="adminControls">
    <h3>Technician Controls</h3>
    <div class="admin-actions">
      <button id="hardResetBtn" class="danger-btn">Hard Reset System</button>
      <div>
        <input type="number" id="cartridgeResetInput" placeholder="e.g., 3" min="1" max="{count}">
        <button id="cartridgeResetBtn" class="admin-btn">Reset Cartridge</button>
      </div>
    </div>
  </div>
  <div class="cartridges-grid" id="cartridgesGrid">{cards}</div>
</div>
<div class="modal-overlay" id="loginModal">
  <div class="modal-content">
    <h2>Technician Login</h2>
    <div class="form-group">
      <label for="userId">User ID</label>
      <input type="text" id="userId" value="{_e(prefill_user)}">
    </div>
    <div class="form-group">
      <label for="password">Password</label>
      <input type="password" id="password" value="{_e(prefill_pass)}">
    </div>
    <p id="loginError" class="login-error">Authentication Failed.</p>
    <div class="modal-actions">
      <button id="cancelLoginBtn" class="admin-btn">Cancel</button>
      <button id="submitLoginBtn" class="connect-btn">Login</button>
    </div>
  </div>
</div>
<script>{SCRIPT}</script>
</body>
</html>
"""
