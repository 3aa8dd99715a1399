from os import environ
from aws_lambda_powertools import Logger, Tracer

# Retrieve environment variables with fallbacks
app_name: str = environ.get('app', 'lacework-security-hub-setup')
log_level: str = environ.get('powertools_log_level', 'INFO')
log_event: bool = environ.get('powertools_log_event', 'false').lower() == 'true'

logger = Logger(
    service=app_name,
    level=log_level
)

# X-Ray tracing, disabled with POWERTOOLS_TRACE_DISABLED outside Lambda
tracer = Tracer(service=app_name)

logger.info(f"Logger initialized with service: {app_name}, level: {log_level}, log_event: {log_event}")
