from flask import Flask, request, jsonify
from dotenv import load_dotenv
import logging
import uuid
from pathlib import Path

load_dotenv()
from config import Config
from database_builder import get_database_info, list_databases as list_database_files
from sqlite_ingest import Converter, ConfigurationError, ConversionError, SupportedFormats
from utils import configure_logging
from werkzeug.utils import secure_filename

app = Flask(__name__)
app.config.from_object(Config)

configure_logging(app.config['LOG_LEVEL'])
logger = logging.getLogger(__name__)


def allowed_file(filename):
    return '.' in filename and SupportedFormats.is_supported(filename.rsplit('.', 1)[1])


def _output_dir() -> Path:
    output_dir = Path(app.config['OUTPUT_DIR'])
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


@app.route('/health', methods=['GET'])
def health_check():
    return jsonify({"status": "healthy"}), 200


@app.route('/convert', methods=['POST'])
def convert():
    """
    Upload one or more source files and convert them into a single database.
    Accepts: multipart/form-data with files[] and optional db_name, format, prefix, key_row
    Returns: Per-source table counts and the resulting database description
    """
    files = request.files.getlist('files[]')
    if not files:
        return jsonify({"error": "No files provided"}), 400

    file_format = request.form.get('format') or None
    prefix = request.form.get('prefix') or app.config['TABLE_PREFIX']
    try:
        key_row = int(request.form.get('key_row') or app.config['KEY_ROW'])
    except ValueError:
        return jsonify({"error": "key_row must be an integer"}), 400

    upload_path = Path(app.config['UPLOAD_DIR']) / str(uuid.uuid4())
    upload_path.mkdir(parents=True, exist_ok=True)

    saved = []
    for file in files:
        filename = secure_filename(file.filename or '')
        if not filename or (file_format is None and not allowed_file(filename)):
            return jsonify({"error": f"Invalid file: {file.filename}"}), 400
        file_path = upload_path / filename
        file.save(str(file_path))
        saved.append(file_path)

    db_name = secure_filename(request.form.get('db_name') or '') or saved[0].stem
    db_path = _output_dir() / f"{db_name}.sqlite"

    sources = []
    try:
        with Converter(db_path) as converter:
            for file_path in saved:
                converter.change_source(file_path, file_format, prefix, key_row)
                sources.append({"filename": file_path.name, "tables": converter.convert()})
    except ConfigurationError as e:
        return jsonify({"error": str(e)}), 400
    except ConversionError as e:
        logger.warning("Upload conversion failed: %s", e)
        return jsonify({"error": str(e), "sources": sources}), 422

    return jsonify({
        "success": True,
        "sources": sources,
        "database": get_database_info(str(db_path))
    }), 200


@app.route('/databases', methods=['GET'])
def list_databases():
    """
    List all converted databases.
    Returns: List of databases with metadata
    """
    databases = list_database_files(str(_output_dir()))
    return jsonify({"databases": databases}), 200


@app.route('/databases/<db_name>', methods=['GET'])
def database_info(db_name):
    """
    Get detailed information about a database.
    Returns: Tables, columns, and row counts
    """
    db_path = _output_dir() / f"{secure_filename(db_name)}.sqlite"
    try:
        info = get_database_info(str(db_path))
    except FileNotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify(info), 200


if __name__ == '__main__':
    app.run(debug=True, port=5001)
