import httpx

BASE_URL = "http://backend.test/api"


def envelope(data, status_code=200):
    return httpx.Response(status_code, json={"success": True, "data": data})


def error_envelope(status_code, code=None, message=None, details=None, reason=None):
    error = {"code": code, "message": message, "details": details}
    if reason is not None:
        error["reason"] = reason
    return httpx.Response(status_code, json={"success": False, "error": error})


def project_payload(**overrides):
    payload = {
        "uuid": "p-1",
        "uuidApplication": "a-1",
        "title": "Soil moisture sensing",
        "createdAt": "2024-01-15T10:30:00Z",
        "estimatedDate": "2024-07-15",
        "status": {"name": "project_approved"},
        "uuidCreator": "prof-1",
        "teamMembers": [
            {"roleName": "Student", "uuidUser": "s-1"},
            {"roleName": "Student", "uuidUser": "s-2"},
            {"roleName": "Student", "uuidUser": "s-3"},
            {"roleName": "Advisor", "uuidUser": "t-1"},
        ],
        "projectTypes": [
            {"id": 1, "name": "Thesis", "minEstimatedMonths": 6, "maxEstimatedMonths": 9},
        ],
    }
    payload.update(overrides)
    return payload
