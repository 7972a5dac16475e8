"""
Entry point for Flask.

Usage (from project root):

    flask --app run.py --debug run

    flask --app run.py seed
    flask --app run.py db upgrade

"""

from wrenchd import create_app

# WSGI application object. `flask run` looks for this `app` variable.
app = create_app()

if __name__ == "__main__":
    # Dev only; use `flask run` or a WSGI server in production.
    app.run(debug=True)
