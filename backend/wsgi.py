"""
Application entry point.

    python wsgi.py                 # development server on SERVER_PORT (default 2022)
    FLASK_APP=wsgi.py flask ...    # CLI: system / users / seed / db
"""

from retail_pos import create_app
from retail_pos.extensions import db

app = create_app()


@app.shell_context_processor
def make_shell_context():
    """Make database and models available in Flask shell"""
    from retail_pos import models
    return {
        'db': db,
        'User': models.User,
        'Product': models.Product,
        'Transaction': models.Transaction,
        'StockAdjustment': models.StockAdjustment,
    }


if __name__ == '__main__':
    app.logger.info("Starting %s backend on port %s", app.config['BUSINESS_NAME'], app.config['SERVER_PORT'])
    app.run(host='0.0.0.0', port=app.config['SERVER_PORT'])
