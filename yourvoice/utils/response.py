from typing import Any


def success_response(data: Any = None, msg: str = "success") -> dict:
    return {
        "code": 200,
        "msg": msg,
        "data": data
    }


def error_response(code: int = 400, msg: str = "Permintaan tidak valid", data: Any = None) -> dict:
    return {
        "code": code,
        "msg": msg,
        "data": data
    }


def created_response(data: Any = None, msg: str = "Berhasil dibuat") -> dict:
    return {
        "code": 201,
        "msg": msg,
        "data": data
    }


def bad_request_response(msg: str = "Permintaan tidak valid", data: Any = None) -> dict:
    return error_response(400, msg, data)


def unauthorized_response(msg: str = "Unauthorized", data: Any = None) -> dict:
    return error_response(401, msg, data)


def server_error_response(msg: str = "Terjadi kesalahan server") -> dict:
    return error_response(500, msg)
