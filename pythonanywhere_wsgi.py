import sys
import os

# Add your project directory to the sys.path
project_home = os.environ.get('MEALS_PROJECT_HOME', '/home/YOUR_USERNAME/meal-pack-service')
if project_home not in sys.path:
    sys.path.insert(0, project_home)

# Set the working directory
os.chdir(project_home)

# Production config unless the host says otherwise
os.environ.setdefault('FLASK_ENV', 'production')

# Import your Flask app
from app import app as application
