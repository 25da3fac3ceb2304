from click.testing import CliRunner

from storefront_admin.manage import cli


def test_roster_commands(tmp_path):
    runner = CliRunner()
    db = ["--db-uri", f"sqlite:///{tmp_path / 'storefront.db'}"]

    result = runner.invoke(cli, db + ["create-db"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(cli, db + ["list-admins"])
    assert result.exit_code == 0
    assert "No admins" in result.output

    result = runner.invoke(cli, db + ["create-user", "--email", "jane@shop.test",
                                      "--password", "pw123456"])
    assert result.exit_code == 0, result.output
    user_id = result.output.split()[2]

    result = runner.invoke(cli, db + ["add-admin", "jane@shop.test"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(cli, db + ["add-admin", "jane@shop.test"])
    assert result.exit_code == 1
    assert "already an admin" in result.output

    result = runner.invoke(cli, db + ["add-admin", "ghost@nowhere.test"])
    assert result.exit_code == 1

    result = runner.invoke(cli, db + ["list-admins"])
    assert f"{user_id}\tjane@shop.test" in result.output

    result = runner.invoke(cli, db + ["remove-admin", user_id])
    assert result.exit_code == 0
    result = runner.invoke(cli, db + ["list-admins"])
    assert "No admins" in result.output
