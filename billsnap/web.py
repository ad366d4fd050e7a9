"""Flask host for the license gate and the invoice counter."""

from __future__ import annotations

from flask import Flask, jsonify, render_template_string, request

from .license import LicenseManager, RemoteLicenseManager

MSG_TRIAL_EXHAUSTED = "Trial limit reached. Please activate a license."

PAGE = """<!doctype html>
<html>
<head><meta charset="utf-8"><title>BillSnap</title></head>
<body>
{% if show_app %}
  <div id="app">
    <h1>BillSnap</h1>
    {% if status.is_licensed %}
      <p>Licensed: {{ status.key }}</p>
    {% else %}
      <p>Trial: {{ status.remaining|int }}/{{ status.trial_limit }} invoices remaining</p>
    {% endif %}
  </div>
{% else %}
  <div id="licenseGate">
    <h2>BillSnap</h2>
    <p>Enter your license key to access the application</p>
    <input type="text" id="licenseGateInput" placeholder="BILLSNAP-XXXX-XXXX-XXXX-XXXX" maxlength="29">
    <div id="licenseGateError"></div>
    <button onclick="activate()">Activate License</button>
    <p>Need a license key? Contact <strong>support@billsnap.app</strong></p>
  </div>
  <script>
    async function activate() {
      const key = document.getElementById('licenseGateInput').value.trim().toUpperCase();
      const resp = await fetch('/api/license/activate', {
        method: 'POST',
        headers: {'Content-Type': 'application/json'},
        body: JSON.stringify({key: key})
      });
      const result = await resp.json();
      if (result.success) {
        location.reload();
      } else {
        document.getElementById('licenseGateError').textContent = result.message;
      }
    }
  </script>
{% endif %}
</body>
</html>
"""

_ERROR_STATUS = {"network_error": 503, "storage_error": 500}


def _status_payload(manager: LicenseManager) -> dict:
    payload = manager.get_status().to_dict()
    if isinstance(manager, RemoteLicenseManager):
        payload["license"] = manager.get_license_info().to_dict()
    return payload


def create_app(manager: LicenseManager) -> Flask:
    """Build the Flask app around an already constructed license manager."""
    app = Flask(__name__)

    @app.route("/")
    def index():
        status = manager.get_status()
        return render_template_string(PAGE, status=status, show_app=status.can_create)

    @app.route("/api/license/status", methods=["GET"])
    def license_status():
        return jsonify(_status_payload(manager))

    @app.route("/api/license/activate", methods=["POST"])
    def activate():
        data = request.get_json(silent=True) or {}
        key = data.get("key", "")
        if not isinstance(key, str):
            key = ""
        result = manager.activate_license(key)
        if result.success:
            return jsonify(result.to_dict())
        return jsonify(result.to_dict()), _ERROR_STATUS.get(result.error, 400)

    @app.route("/api/license/deactivate", methods=["POST"])
    def deactivate():
        if not isinstance(manager, RemoteLicenseManager):
            return jsonify(error="Deactivation is not available in this mode"), 404
        manager.deactivate()
        return jsonify(_status_payload(manager))

    @app.route("/api/invoices", methods=["POST"])
    def create_invoice():
        if not manager.record_invoice():
            return jsonify(error=MSG_TRIAL_EXHAUSTED, status=manager.get_status().to_dict()), 402
        return jsonify(status=manager.get_status().to_dict()), 201

    return app
