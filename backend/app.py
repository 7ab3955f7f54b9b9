import os
from avatar_api import create_app

app = create_app()

# Run Flask app
if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))  # Default to 5000 if PORT is not set
    app.run(host="0.0.0.0", port=port, debug=str(os.getenv("FLASK_DEBUG", "false")).lower() == "true")
