from unity_editor_relay.cli.app import app

app()
