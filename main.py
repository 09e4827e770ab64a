import sys

from gallery.cli import main

# to run locally: AWS_REGION=eu-west-1 S3_BUCKET=... DB_SECRET_ARN=... DB_HOST=... python main.py
if __name__ == "__main__":
    sys.exit(main())
