"""
Common CLI utilities and decorators for consistent command behavior.
"""

import logging
import sys
import click
from functools import wraps

from .exit_codes import INTERRUPTED, CommandError, get_exit_code_for_exception
from .output import emit_error

logger = logging.getLogger(__name__)


def handle_errors(func):
    """
    Decorator that maps exceptions to exit codes:
    - CommandError: its own exit code, message as JSON on stderr
    - KeyboardInterrupt: INTERRUPTED
    - anything else: code from get_exit_code_for_exception

    Click's own exceptions pass through untouched.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            emit_error("Interrupted by user", type="interrupted")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            raise
        except CommandError as e:
            context = None
            if hasattr(e, 'field'):
                context = {'field': e.field, 'value': repr(e.value)}
            emit_error(str(e), type=type(e).__name__, context=context)
            sys.exit(e.exit_code)
        except Exception as e:
            logger.debug("Command failed", exc_info=True)
            emit_error(f"Command failed: {e}", type=type(e).__name__)
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


# Standard options that many commands share
common_options = {
    'json': click.option('--json', 'json_output', is_flag=True,
                         help='Output as JSONL instead of a table'),
    'tag': click.option('--tag', '-t', 'tags', multiple=True,
                        help='Existing registry tag (repeatable); skips the registry query'),
    'app': click.option('--app', 'application',
                        help='Application to query the configured registry for'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('json', 'tag')
        def my_command(json_output, tags):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
