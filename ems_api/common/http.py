# ems_api/common/http.py
from flask import jsonify, request

def ok(data=None, status=200, message=None, **meta):
    payload = {"success": True, "data": data}
    if message:
        payload["message"] = message
    if meta:
        payload["meta"] = meta
    return jsonify(payload), status

def fail(message="Bad Request", status=400, code=None, detail=None):
    payload = {"success": False, "message": message}
    if code: payload["code"] = code
    if detail: payload["detail"] = detail
    return jsonify(payload), status

def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}

def remap(data: dict, aliases: dict) -> dict:
    """
    Translate wire keys to store keys, keeping only keys the client sent.
    aliases: {"department_id": ("departmentId", "department_id"), ...}
    """
    out = {}
    for target, names in aliases.items():
        for n in names:
            if n in data:
                out[target] = data[n]
                break
    return out
