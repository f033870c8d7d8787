pytest_plugins = ["pytester", "spotify_contract.pytest_plugin"]
