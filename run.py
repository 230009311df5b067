import eventlet
eventlet.monkey_patch()

import os

from eventhive import create_app
from eventhive.extensions import socketio

app = create_app()

if __name__ == '__main__':
    socketio.run(
        app,
        host=os.getenv('HOST', '0.0.0.0'),
        port=int(os.getenv('PORT', '5000')),
        debug=app.config.get('DEBUG', False),
    )
