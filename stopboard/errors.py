# Failures raised by the store and mapped to HTTP responses by the app.


class StopboardError(Exception):
    status = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequest(StopboardError):
    pass


class MalformedUpdate(BadRequest):
    pass


class NotFound(StopboardError):
    pass


class InvalidStation(NotFound):
    def __init__(self, station_id: str):
        super().__init__("Invalid station ID")
        self.station_id = station_id


class InvalidLine(NotFound):
    def __init__(self, station_id: str, line_id: str):
        super().__init__("Invalid line ID")
        self.station_id = station_id
        self.line_id = line_id


class ValidationFailure(StopboardError):
    pass


class IndexOutOfBounds(ValidationFailure):
    def __init__(self, index: int):
        super().__init__("Line index out of bounds")
        self.index = index


class InternalError(StopboardError):
    status = 500


class ConfigError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
