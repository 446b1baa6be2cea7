from __future__ import annotations


class EngineError(RuntimeError):
    pass


class MalformedCaseError(EngineError, ValueError):
    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message

    def to_detail(self) -> dict:
        return {"error": "malformed_case", "field": self.field, "message": self.message}


class UnknownAirportError(EngineError, LookupError):
    def __init__(self, code: str) -> None:
        super().__init__(f"airport not in reference table: {code}")
        self.code = code


class VerificationUnavailableError(EngineError):
    pass


class InvalidTransitionError(EngineError):
    pass
