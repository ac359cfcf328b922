pytest_plugins = ["tests.fixtures.scale_fixtures"]
