import click

from .resolve import resolve, summary

@click.group()
def cli():
    pass

@click.command()
@click.option("--host", default="0.0.0.0")
@click.option("--port", default=8000, type=int)
@click.option("--reload", is_flag=True, default=False)
def serve(host, port, reload):
    """Run the resolution API with uvicorn."""
    import uvicorn

    uvicorn.run("portal_backend.server:app", host=host, port=port, reload=reload)

cli.add_command(resolve,"resolve")
cli.add_command(summary,"summary")
cli.add_command(serve,"serve")

if __name__ == '__main__':
    cli()
