"""WSGI entry point for the Task Manager API."""

import os

from task_manager import create_app

app = create_app(os.getenv("FLASK_ENV", "production"))


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
