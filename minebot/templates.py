"""
HTML pages served by the dashboards.
"""
from string import Template

UPDATE_DASHBOARD_PAGE = Template("""<!DOCTYPE html>
<html>
<head>
    <title>Bot Dashboard</title>
    <style>
        body { font-family: Arial, sans-serif; background: #2c2f33; color: white; margin: 0; padding: 20px; }
        .container { max-width: 800px; margin: 0 auto; }
        .card { background: #36393f; padding: 20px; margin: 20px 0; border-radius: 8px; }
        button { background: #7289da; color: white; border: none; padding: 10px 20px; border-radius: 5px; cursor: pointer; margin: 5px; }
        button:hover { background: #5b6eae; }
        textarea { width: 100%; padding: 10px; margin: 10px 0; background: #40444b; border: 1px solid #555; color: white; border-radius: 5px; }
        .status { padding: 10px; margin: 10px 0; border-radius: 5px; }
        .success { background: #43b581; }
        .error { background: #f04747; }
    </style>
</head>
<body>
    <div class="container">
        <h1>🤖 Bot Dashboard</h1>

        <div class="card">
            <h2>Bot Status</h2>
            <p>Status: <span style="color: #43b581;">Online</span></p>
            <p>Servers: $servers</p>
            <p>Users: $users</p>
        </div>

        <div class="card">
            <h2>Update System</h2>
            <textarea id="updateMessage" placeholder="Update message..." rows="4"></textarea>
            <br>
            <button onclick="sendUpdate()">Send Update</button>
            <button onclick="post('/api/lock-channel', 'Channel locked successfully!', 'Failed to lock channel!')">Lock Update Channel</button>
            <button onclick="post('/api/unlock-channel', 'Channel unlocked successfully!', 'Failed to unlock channel!')">Unlock Update Channel</button>
            <div id="updateStatus"></div>
        </div>
    </div>

    <script>
        async function sendUpdate() {
            const message = document.getElementById('updateMessage').value;
            if (!message) {
                showStatus('Please enter update message!', 'error');
                return;
            }
            const ok = await post('/api/update', 'Update sent successfully!', 'Failed to send update!', { message });
            if (ok) document.getElementById('updateMessage').value = '';
        }

        async function post(url, success, failure, body) {
            try {
                const options = { method: 'POST' };
                if (body) {
                    options.headers = { 'Content-Type': 'application/json' };
                    options.body = JSON.stringify(body);
                }
                const response = await fetch(url, options);
                showStatus(response.ok ? success : failure, response.ok ? 'success' : 'error');
                return response.ok;
            } catch (error) {
                showStatus('Error: ' + error.message, 'error');
                return false;
            }
        }

        function showStatus(message, type) {
            const statusDiv = document.getElementById('updateStatus');
            statusDiv.innerHTML = '<div class="status ' + type + '">' + message + '</div>';
            setTimeout(() => statusDiv.innerHTML = '', 5000);
        }
    </script>
</body>
</html>
""")

LOGIN_PAGE = Template("""<!DOCTYPE html>
<html><head><title>Login</title>
<style>
body {background:#0f172a;color:#fff;font-family:sans-serif;display:flex;justify-content:center;align-items:center;height:100vh;}
.card {background:#1e293b;padding:20px;border-radius:12px;text-align:center;box-shadow:0 0 30px #8b5cf6;}
input,button {width:100%;padding:10px;margin-top:10px;border:none;border-radius:6px;}
button {background:linear-gradient(90deg,#8b5cf6,#06b6d4);color:#fff;font-weight:bold;cursor:pointer;}
.error {color:#f87171;margin-top:10px;}
</style></head>
<body>
  <div class="card">
    <h2>Admin Dashboard Login</h2>
    <form method="POST" action="$login_url">
      <input type="password" name="password" placeholder="Admin Password" required>
      <button type="submit">Login</button>
    </form>
    $error
  </div>
</body></html>
""")

LOGIN_ERROR = '<div class="error">❌ Invalid password</div>'

ADMIN_DASHBOARD_PAGE = Template("""<!DOCTYPE html>
<html>
  <head>
    <title>Admin Dashboard</title>
    <style>
      body {background:#0f172a;color:#fff;font-family:sans-serif;padding:20px;}
      .btn {padding:12px 20px;margin:5px;background:linear-gradient(90deg,#8b5cf6,#06b6d4);border:none;border-radius:8px;color:white;font-weight:bold;cursor:pointer;}
      .logs {background:#1e293b;padding:15px;height:300px;overflow-y:auto;margin-top:10px;border-radius:8px;font-family:monospace;}
    </style>
  </head>
  <body>
    <h1>Minecraft Bot Admin Dashboard</h1>
    <p>Update active: $active | Auto update: $auto_update</p>
    <button class="btn" onclick="call('start-update')">⚡ Start Update</button>
    <button class="btn" onclick="call('finish-update')">✅ Finish Update</button>
    <button class="btn" onclick="call('toggle-auto')">🔄 Toggle Auto Update</button>
    <div class="logs" id="logs"></div>
    <script>
      const logs = document.getElementById('logs');
      function append(msg) {
        const div = document.createElement('div');
        div.textContent = '[' + new Date().toLocaleTimeString() + '] ' + msg;
        logs.prepend(div);
      }
      const scheme = location.protocol === 'https:' ? 'wss://' : 'ws://';
      const socket = new WebSocket(scheme + location.host + '$ws_url');
      socket.onmessage = (event) => append(event.data);
      async function call(action) {
        const res = await fetch('$api_url' + action, { method: 'POST' });
        const data = await res.json();
        append(data.error ? 'Error: ' + data.error : data.status);
      }
    </script>
  </body>
</html>
""")
