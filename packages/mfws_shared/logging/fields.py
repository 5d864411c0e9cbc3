"""Canonical structured logging field names."""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EXCEPTION = "exception"
EVENT = "event"

# Operation invocation fields.
COMPONENT_ID = "component_id"
OPERATION = "operation"
INVOCATION_EVENT = "operation_invocation"
COMPLETION_EVENT = "operation_completion"
INSTRUMENTATION_FAILURE_EVENT = "operation_instrumentation_failure"
SUCCESS = "success"
DURATION_MS = "duration_ms"
ERRORS = "errors"
ERROR_TYPE = "error_type"
STAGE = "stage"
CONCERN = "concern"

# Request fields.
HTTP_METHOD = "http_method"
HTTP_PATH = "http_path"

# Common process-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"
