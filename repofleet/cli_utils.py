"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import logging
import sys
from functools import wraps

import click

from .exit_codes import INTERRUPTED, CommandError

logger = logging.getLogger(__name__)

# -h works on every command
CONTEXT_SETTINGS = dict(help_option_names=['-h', '--help'])


def handle_errors(func):
    """
    Decorator that provides standard error handling for batch commands:
    - CommandError (fatal preconditions) -> message on stderr and its exit code
    - With --json, the error is also written to stdout as a JSON object
    - Ctrl+C -> exit 130

    Per-repository failures never reach this layer; they are outcomes.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        output_json = kwargs.get('output_json', False)
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            print("\nInterrupted by user", file=sys.stderr, flush=True)
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except CommandError as e:
            logger.debug("Command aborted", exc_info=True)
            click.echo(click.style(f"ERROR: {e}", fg='red'), err=True)
            if output_json:
                error_obj = {
                    "error": str(e),
                    "type": type(e).__name__,
                    "exit_code": e.exit_code,
                }
                print(json.dumps(error_obj, ensure_ascii=False), flush=True)
            sys.exit(e.exit_code)

    return wrapper


def output_options(f):
    """Decorator to add the shared output flags."""
    f = click.option('--debug', is_flag=True, help='Enable debug logging')(f)
    f = click.option('--pretty', is_flag=True, help='Display with rich formatting')(f)
    f = click.option('--json', 'output_json', is_flag=True, help='Output as JSONL')(f)
    return f
