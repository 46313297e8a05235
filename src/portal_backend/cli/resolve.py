import asyncio
import functools
import click
from fastapi import HTTPException
from portal_backend.api.resolve import to_response
from portal_backend.directory.base import Directory
from portal_backend.directory.http_client import HttpDirectory
from portal_backend.directory.memory import InMemoryDirectory
from portal_backend.permissions.aggregator import PermissionAggregator
from portal_backend.permissions.principal import Principal
from portal_backend.permissions.summary import PermissionSummaryService
from portal_backend.resolution.facade import ResolutionFacade
from portal_backend.resolution.resolver import PathResolver, split_path
from portal_backend.settings import settings


def directory_options(func):
  func = click.option("--seed", "-s", "seed", type=click.Path(exists=True, dir_okay=False), default=None,
                      help="YAML seed file for an in-process directory")(func)
  func = click.option("--api-url", "api_url", default=lambda: settings.DIRECTORY_API_URL, show_default="DIRECTORY_API_URL",
                      help="Base url of the module backend")(func)
  return func

def open_directory(api_url: str, seed: str = None) -> Directory:
  if seed is not None:
    return InMemoryDirectory.from_yaml(seed)
  return HttpDirectory(api_url, timeout=settings.DIRECTORY_API_TIMEOUT)

def handle_api_exceptions(func):
  @functools.wraps(func)
  def wrapper(*args, **kwargs):
    try:
      return func(*args, **kwargs)
    except HTTPException as e:
      click.echo(f"[{click.style(e.status_code,fg='red')}] {e.detail}")
      raise SystemExit(1)
    except ValueError as e:
      click.echo(f"[{click.style('400',fg='red')}] {e}")
      raise SystemExit(1)

  return wrapper

async def _run_resolve(directory: Directory, segments, principal: Principal):
  try:
    aggregator = PermissionAggregator(directory)
    facade = ResolutionFacade(PathResolver(directory), aggregator)
    return await facade.resolve_for_principal(segments, principal)
  finally:
    await directory.close()

async def _run_summary(directory: Directory, subject: str, subject_id: str):
  try:
    service = PermissionSummaryService(directory, PermissionAggregator(directory))
    if subject == "user":
      return await service.user_summary(subject_id)
    return await service.group_summary(subject_id)
  finally:
    await directory.close()

@click.command()
@click.argument("path")
@click.option("--user", "-u", "user_id", default=None, help="User id of the principal")
@click.option("--group", "-g", "group_ids", multiple=True, help="Group id of the principal, repeatable")
@directory_options
@handle_api_exceptions
def resolve(path, user_id, group_ids, api_url, seed):
  """Resolve PATH and print the route and the principal's permissions."""

  principal = Principal(user_id=user_id, group_ids=frozenset(group_ids))
  directory = open_directory(api_url, seed)

  result = asyncio.run(_run_resolve(directory, split_path(path), principal))

  if not result.permissions_available:
    click.echo(click.style("Permissions could not be checked", fg="yellow"), err=True)

  click.echo(to_response(result).model_dump_json(indent=4, by_alias=True))

@click.command()
@click.argument("subject", type=click.Choice(["user", "group"]))
@click.argument("subject_id")
@directory_options
@handle_api_exceptions
def summary(subject, subject_id, api_url, seed):
  """Show every permission held by a user or group and where it comes from."""

  directory = open_directory(api_url, seed)

  result = asyncio.run(_run_summary(directory, subject, subject_id))

  if not result.available:
    click.echo(f"[{click.style('503',fg='red')}] {result.error}")
    raise SystemExit(1)

  for entry in result.entries:
    actions = ", ".join(f"{p.resource}:{p.action}" for p in entry.permissions)
    click.echo(f"{click.style(entry.source.label,fg='green')} {entry.module_code}/{entry.instance_slug} {actions}")
