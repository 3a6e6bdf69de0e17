"""A thin access gate for the web app.

When the app is configured with an ``ACCESS_CODE``, every page except the
login form and static files requires the visitor to have entered that code.
Without an access code the gate stays open.
"""

from __future__ import annotations

import hmac
from urllib.parse import urlsplit

from flask import Blueprint, current_app, redirect, render_template, request, session, url_for

bp = Blueprint("auth", __name__)

OPEN_ENDPOINTS = {"auth.login", "auth.logout", "static"}


def gate_enabled() -> bool:
    return bool(current_app.config.get("ACCESS_CODE"))


def _local_target(target: str) -> str:
    """Return ``target`` if it is a path on this site, else the index URL."""
    # browsers read a backslash as a slash
    parts = urlsplit(target.replace("\\", "/"))
    if not target.startswith("/") or parts.scheme or parts.netloc:
        return url_for("index")
    return target


def require_login():
    """``before_request`` hook: redirect unauthenticated visitors to /login."""
    if not gate_enabled() or request.endpoint in OPEN_ENDPOINTS:
        return None
    if session.get("authenticated"):
        return None
    return redirect(url_for("auth.login", next=request.path))


@bp.route("/login", methods=["GET", "POST"])
def login():
    error = None
    if request.method == "POST":
        code = request.form.get("access_code", "")
        expected = current_app.config.get("ACCESS_CODE") or ""
        if hmac.compare_digest(code.encode("utf-8"), expected.encode("utf-8")):
            session["authenticated"] = True
            return redirect(_local_target(request.args.get("next", "")))
        current_app.logger.warning("Rejected access code from %s", request.remote_addr)
        error = "Invalid access code."
    return render_template("login.html", error=error)


@bp.route("/logout")
def logout():
    session.pop("authenticated", None)
    return redirect(url_for("auth.login"))
