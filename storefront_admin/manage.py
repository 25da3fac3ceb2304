"""
Helper commands for setting up a storefront database.

.. code-block:: bash

   $ STOREFRONT_DB_URI=sqlite:///./storefront.db python -m storefront_admin.manage create-db
   $ python -m storefront_admin.manage create-user --email jane@example.com
   $ python -m storefront_admin.manage add-admin jane@example.com

.. warning: ``create-user`` is for dev/test databases.

"""

import click

from . import config
from .db import create_tables, make_engine, make_session_factory
from .exceptions import AddAdminError, IdentityProviderError, RosterError
from .roster import AdminRoster
from .services.identity import SQLIdentityProvider
from .services.rowstore import SQLRowStore


def _collaborators(db_uri: str):
    engine = make_engine(db_uri)
    store = SQLRowStore(make_session_factory(engine))
    identity = SQLIdentityProvider(store, config.JWT_SECRET, config.SESSION_DURATION)
    return engine, store, identity


@click.group()
@click.option('--db-uri', default=config.STOREFRONT_DB_URI, show_default=True)
@click.pass_context
def cli(ctx, db_uri):
    ctx.obj = _collaborators(db_uri)


@cli.command('create-db')
@click.pass_obj
def create_db(obj):
    """Create any missing tables."""
    engine, _, _ = obj
    create_tables(engine)
    click.echo('Tables created')


@cli.command('create-user')
@click.option('--email', prompt='Email address')
@click.option('--password', prompt='Password', hide_input=True,
              confirmation_prompt=True)
@click.pass_obj
def create_user(obj, email, password):
    """Register a user with the bundled identity provider."""
    _, _, identity = obj
    try:
        user = identity.create_user(email, password)
    except (ValueError, IdentityProviderError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f'Created user {user.user_id} <{user.email}>')


@cli.command('add-admin')
@click.argument('email')
@click.pass_obj
def add_admin(obj, email):
    """Grant admin privilege to the user with EMAIL."""
    _, store, identity = obj
    try:
        AdminRoster(store, identity).add_admin(email)
    except (ValueError, AddAdminError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f'{email.strip()} is now an admin')


@cli.command('remove-admin')
@click.argument('user_id')
@click.pass_obj
def remove_admin(obj, user_id):
    """Revoke admin privilege from USER_ID."""
    _, store, identity = obj
    try:
        AdminRoster(store, identity).remove_admin(user_id)
    except RosterError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f'{user_id} is not an admin')


@cli.command('list-admins')
@click.pass_obj
def list_admins(obj):
    """Print the admin roster."""
    _, store, identity = obj
    try:
        admins = AdminRoster(store, identity).list_admins()
    except RosterError as exc:
        raise click.ClickException(str(exc)) from exc
    if not admins:
        click.echo('No admins')
    for admin in sorted(admins, key=lambda admin: admin.email):
        click.echo(f'{admin.id}\t{admin.email}')


if __name__ == '__main__':
    cli()
