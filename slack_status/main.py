# -*- coding: utf-8 -*-
"""
slack_status.main

Command line entry point.

Usage:
    slack-status -m "In a meeting" -e :calendar: -d 1h --dnd   # set status everywhere
    slack-status                                               # clear status
    slack-status set -g eng -m "Deploying" -d 30m              # only the "eng" group
    slack-status init <workspace> <clientId> <clientSecret>    # link a workspace
    slack-status list                                          # show linked workspaces

Run from the repository root with 'python -m slack_status.main'.
"""

import argparse
import functools
import sys
from typing import List, Optional

from dotenv import load_dotenv

from slack_status.config import (
    DEFAULT_EMOJI,
    DEFAULT_HTTP_BIND,
    DEFAULT_OAUTH_SCOPES,
    DEFAULT_REDIRECT_URI,
    LOG_LEVELS,
    VALID_IMAGE_FORMATS,
    VERSION,
    InitSettings,
    StatusSettings,
    expand_config_path,
    get_authorize_timeout,
    get_config_path,
    get_http_timeout,
    get_log_level,
)
from slack_status.credentials.handlers import authorize
from slack_status.credentials.oauth_server import AuthorizationError
from slack_status.external_libraries.credential_store import ConfigError, CredentialsStore
from slack_status.external_libraries.slack.client import SlackClient
from slack_status.external_libraries.slack.credentials import WorkspaceCredential
from slack_status.logger import define_log_level, logger
from slack_status.status.status import StatusApplyError, apply
from slack_status.status.validation import ValidationError, build_intent

DESCRIPTION = """Set your status in Slack.

Running with no arguments will cause your status to be cleared.
When enabling do not disturb (dnd) you must specify a duration."""

INIT_DESCRIPTION = """Initializes slack-status for a user in the defined workspace.
For this you will be required to use an existing or create a Slack App in your workspace.

Make sure that under "OAuth & Permissions" you have set the Redirect URL the same as the one
you will use with the CLI (default: http://localhost:3030/redirect)."""


def _default(value, suppress: bool):
    # subcommands must not overwrite values already parsed by the root parser
    return argparse.SUPPRESS if suppress else value


def _add_common_arguments(parser: argparse.ArgumentParser, suppress: bool = False) -> None:
    parser.add_argument("-c", "--config", default=_default(get_config_path(), suppress),
                        help="Config file (default: %(default)s)")
    parser.add_argument("--log-level", default=_default(get_log_level(), suppress),
                        choices=LOG_LEVELS,
                        type=str.upper, help="Console log level")
    parser.add_argument("--log-file", default=_default(None, suppress), help="Also write logs to this file")


def _add_status_arguments(parser: argparse.ArgumentParser, suppress: bool = False) -> None:
    parser.add_argument("-m", "--message", default=_default("", suppress), help="Status message")
    parser.add_argument("-e", "--emoji", default=_default(DEFAULT_EMOJI, suppress),
                        help="Emoji to set when setting your status")
    parser.add_argument("-d", "--duration", default=_default("", suppress),
                        help="Set status duration, units can be: [m,h]. Leave blank for no expiration")
    parser.add_argument("--away", action="store_true", default=_default(False, suppress),
                        help="Set your status as away")
    parser.add_argument("--dnd", action="store_true", default=_default(False, suppress),
                        help="Set status as do not disturb")
    parser.add_argument("-g", "--group", default=_default("", suppress), help="Limit setting of status to a group")
    parser.add_argument("-w", "--workspace", default=_default("", suppress),
                        help="Limit setting of status to a workspace")
    parser.add_argument("-p", "--profile-pic", dest="profile_pic", default=_default("", suppress),
                        help=f"Profile picture path (valid formats: {', '.join(VALID_IMAGE_FORMATS)})")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slack-status",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--version", action="version", version=f"slack-status v{VERSION}")
    _add_common_arguments(parser)
    _add_status_arguments(parser)

    subparsers = parser.add_subparsers(dest="command", metavar="{set,init,list}")

    set_parser = subparsers.add_parser("set", help="Set a custom slack status", description=DESCRIPTION,
                                       formatter_class=argparse.RawDescriptionHelpFormatter)
    _add_common_arguments(set_parser, suppress=True)
    _add_status_arguments(set_parser, suppress=True)

    init_parser = subparsers.add_parser("init", help="Initialize slack-status in a workspace",
                                        description=INIT_DESCRIPTION,
                                        formatter_class=argparse.RawDescriptionHelpFormatter)
    _add_common_arguments(init_parser, suppress=True)
    init_parser.add_argument("workspace_name", help="Name to store the workspace under")
    init_parser.add_argument("client_id", help="Slack App clientId")
    init_parser.add_argument("client_secret", help="Slack App clientSecret")
    init_parser.add_argument("--http-bind", default=DEFAULT_HTTP_BIND,
                             help="HTTP bind details, this has to match the redirect URI port")
    init_parser.add_argument("--scopes", default=DEFAULT_OAUTH_SCOPES, help="V2 OAuth2 Slack user scopes")
    init_parser.add_argument("--redirect-uri", default=DEFAULT_REDIRECT_URI,
                             help="OAuth2 redirect_uri, has to match the HTTP bind port")
    init_parser.add_argument("--group", dest="groups", action="append", default=[],
                             help="Group to put the workspace in (repeatable)")
    init_parser.add_argument("--timeout", type=int, default=None,
                             help="Seconds to wait for the OAuth redirect, 0 waits forever")
    init_parser.add_argument("--no-browser", action="store_true", help="Only print the authorization URL")

    list_parser = subparsers.add_parser("list", help="List linked workspaces")
    _add_common_arguments(list_parser, suppress=True)

    return parser


def status_settings_from_args(args: argparse.Namespace) -> StatusSettings:
    return StatusSettings(
        config_path=expand_config_path(args.config),
        message=args.message,
        emoji=args.emoji,
        duration=args.duration,
        away=args.away,
        dnd=args.dnd,
        group=args.group,
        workspace=args.workspace,
        profile_picture=args.profile_pic,
        http_timeout=get_http_timeout(),
    )


def _authorize_timeout(value: Optional[int]) -> Optional[int]:
    if value is None:
        value = get_authorize_timeout()
    if value < 0:
        raise ValueError(f"authorization timeout must not be negative, got: {value}")
    return value or None


def init_settings_from_args(args: argparse.Namespace) -> InitSettings:
    return InitSettings(
        workspace=args.workspace_name,
        client_id=args.client_id,
        client_secret=args.client_secret,
        config_path=expand_config_path(args.config),
        http_bind=args.http_bind,
        scopes=args.scopes,
        redirect_uri=args.redirect_uri,
        groups=tuple(args.groups),
        timeout=_authorize_timeout(args.timeout),
        http_timeout=get_http_timeout(),
        open_browser=not args.no_browser,
    )


def run_set(settings: StatusSettings) -> int:
    """Validate input, load the store and apply. Returns the applied count."""
    intent = build_intent(
        message=settings.message,
        emoji=settings.emoji,
        duration=settings.duration,
        away=settings.away,
        dnd=settings.dnd,
        group=settings.group,
        workspace=settings.workspace,
        profile_picture=settings.profile_picture or None,
    )
    store = CredentialsStore.load(settings.config_path)

    client_factory = functools.partial(SlackClient, timeout=settings.http_timeout)
    applied = apply(intent, store.workspaces, client_factory)
    logger.info(f"Successfully applied to {applied} workspace(s)")
    return applied


def _print_url(url: str) -> None:
    print("")
    print(url)
    print("")
    sys.stdout.flush()


def run_init(settings: InitSettings) -> WorkspaceCredential:
    store = CredentialsStore.load_or_empty(settings.config_path)

    logger.info(f"Initializing slack-status for workspace {settings.workspace} with the clientId:{settings.client_id}")
    logger.info("Visit URL to trigger OAuth2 flow:")

    result = authorize(
        settings.client_id,
        settings.client_secret,
        redirect_uri=settings.redirect_uri,
        scopes=settings.scopes,
        bind=settings.http_bind,
        timeout=settings.timeout,
        http_timeout=settings.http_timeout,
        present_url=_print_url,
        open_browser=settings.open_browser,
    )

    credential = WorkspaceCredential(
        name=settings.workspace,
        access_token=result.access_token,
        user=result.user,
        groups=list(settings.groups),
    )
    store.add(credential)
    store.save()

    logger.info(f"Successfully saved authorization token to slack-status config {settings.config_path}")
    return credential


def run_list(config_path: str) -> None:
    store = CredentialsStore.load(expand_config_path(config_path))
    if not len(store):
        print("No workspaces configured. Run 'slack-status init' first.")
        return
    for w in store:
        groups = ", ".join(w.groups) if w.groups else "-"
        print(f"{w.name}\tuser={w.user or '-'}\tgroups={groups}")


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    if args.log_level not in LOG_LEVELS:
        # argparse does not check choices against a default read from the environment
        logger.error(f"invalid log level {args.log_level!r}, expected one of: {', '.join(LOG_LEVELS)}")
        return 1
    define_log_level(print_level=args.log_level, logfile=args.log_file)

    try:
        if args.command == "init":
            run_init(init_settings_from_args(args))
        elif args.command == "list":
            run_list(args.config)
        else:
            run_set(status_settings_from_args(args))
    except StatusApplyError as e:
        logger.error(f"{e} ({e.applied} workspace(s) were applied before the failure)")
        return 1
    except (ConfigError, ValidationError, AuthorizationError) as e:
        logger.error(str(e))
        return 1
    except ValueError as e:
        # malformed bind address or environment value
        logger.error(str(e))
        return 1
    except OSError as e:
        logger.error(f"I/O failure: {e}")
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
