pytest_plugins = ["formrequest.pytest_plugin"]
