import logging
import sys

from sqlalchemy.exc import OperationalError

from aesvault import create_app
from aesvault.errors import ConfigurationError


def main():
    # Startup problems end the process instead of serving degraded traffic
    try:
        app = create_app()
    except ConfigurationError as e:
        logging.critical(f'Configuration error: {e.message}')
        sys.exit(1)
    except OperationalError as e:
        logging.critical(f'Database connection error: {e}')
        sys.exit(1)

    app.logger.info(f"Server running on port {app.config['PORT']}")
    app.run(host=app.config['HOST'], port=app.config['PORT'])


if __name__ == '__main__':
    main()
