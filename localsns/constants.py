from localsns.version import __version__

VERSION = __version__

# the default listen address of the emulator
LOCALHOST_IP = "127.0.0.1"
DEFAULT_PORT = 9911
DEFAULT_LISTEN = f"{LOCALHOST_IP}:{DEFAULT_PORT}"

# single pseudo account and region used in all generated identifiers
DEFAULT_ACCOUNT_ID = "000000000000"
DEFAULT_REGION = "us-east-1"

# XML namespaces of the query protocol. Errors use the plain http variant.
SNS_XMLNS = "https://sns.amazonaws.com/doc/2010-03-31/"
SNS_ERROR_XMLNS = "http://sns.amazonaws.com/doc/2010-03-31/"

APPLICATION_XML = "application/xml"

# downstream queue service (e.g., a LocalStack edge port)
DEFAULT_SQS_PORT = 4566
DEFAULT_SQS_ENDPOINT = f"http://localhost:{DEFAULT_SQS_PORT}"

DEFAULT_TOPIC_POLICY = '{"Version":"2012-10-17","Id":"__default_policy_ID","Statement":[]}'

# strings that indicate truthy/falsy values in environment variables
TRUE_STRINGS = ("1", "true", "True")
FALSE_STRINGS = ("0", "false", "False")

# possible values for the LS_LOG environment variable
LOG_LEVELS = ("trace", "debug", "info", "warn", "error", "warning")
LS_LOG_TRACE = "trace"
TRACE_LOG_LEVELS = [LS_LOG_TRACE]

# credentials handed to boto3 when the environment provides none
TEST_AWS_ACCESS_KEY_ID = "test"
TEST_AWS_SECRET_ACCESS_KEY = "test"

DEFAULT_ENCODING = "utf-8"
