# Overview: WSGI entry point; also runs the development server directly.

from pos_api import create_app

app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=app.config["PORT"])
