"""
Common CLI utilities and decorators for consistent command behavior.
"""

import logging
import sys
import click
from functools import wraps

from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError
)
from .reporter import Reporter

logger = logging.getLogger(__name__)


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - Reporter injected as `reporter`
    - Automatic --verbose/-v handling (DEBUG logging)
    - Consistent error handling: fatal errors are reported on stderr
      and mapped to a non-zero exit code
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        verbose = kwargs.get('verbose', False)
        if verbose:
            logging.getLogger("orgsync").setLevel(logging.DEBUG)

        reporter = Reporter()
        kwargs['reporter'] = reporter

        try:
            exit_code = func(*args, **kwargs)
            sys.exit(exit_code or SUCCESS)
        except KeyboardInterrupt:
            reporter.error("Interrupted by user")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            raise
        except CommandError as e:
            reporter.error(str(e))
            sys.exit(e.exit_code)
        except Exception as e:
            logger.debug("Command failed", exc_info=True)
            reporter.error(f"Command failed: {e}")
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


# Standard options that many commands share
common_options = {
    'verbose': click.option('-v', '--verbose', is_flag=True,
                           help='Show debug logging'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('verbose')
        def my_command(verbose):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
