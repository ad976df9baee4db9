from kanban_api.logs.server_log import api_logger
from kanban_api.logs.debug_log import debug_logger, log_function
