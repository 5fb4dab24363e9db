"""
Impact Assessment Platform - Flask Web Application

REST API for multi-step organization assessments: runs, sections,
questions, debounced answer saves, submission and results.
"""

import os
import sys
import logging
from flask import Flask, request, jsonify
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.settings import get_config
from src.assessment.assessment_engine import AssessmentEngine
from src.assessment.errors import (
    AssessmentError,
    BackendUnavailable,
    CooldownActive,
    IncompleteSubmission,
    InvalidConfiguration,
    InvalidRunState,
    RunNotFound,
    SaveFailed,
    SaveInFlight,
    TypeMismatch,
    UnknownQuestion
)
from src.assessment.run import cooldown_period
from src.database.models import db
from src.database.repository import LocalAssessmentBackend

logger = logging.getLogger(__name__)

# HTTP status per error type; subclasses resolve through the MRO
ERROR_STATUS = {
    CooldownActive: 403,
    IncompleteSubmission: 400,
    TypeMismatch: 422,
    UnknownQuestion: 422,
    RunNotFound: 404,
    InvalidRunState: 409,
    SaveInFlight: 409,
    SaveFailed: 502,
    BackendUnavailable: 503,
    InvalidConfiguration: 500,
}


def status_for(error: AssessmentError) -> int:
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 400


# =============================================================================
# App Factory
# =============================================================================

def create_app(config_class=None, engine=None):
    """Create Flask application"""
    app = Flask(__name__)

    # Load configuration
    if config_class is None:
        config_class = get_config()
    app.config.from_object(config_class)

    # Configure logging
    logging.basicConfig(level=app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize extensions
    db.init_app(app)

    # Rate limiting
    limiter = Limiter(
        key_func=get_remote_address,
        app=app,
        default_limits=[app.config.get('RATELIMIT_DEFAULT', "100 per minute")],
        storage_uri=app.config.get('RATELIMIT_STORAGE_URI', 'memory://')
    )
    # Route decorators only hold a weak reference to the limiter
    app.extensions['rate_limiter'] = limiter

    # Assessment engine (fails fast on a broken question bank)
    engine = engine or AssessmentEngine.from_config(app.config)
    backend = LocalAssessmentBackend(
        engine,
        cooldown=cooldown_period(
            app.config.get('ASSESSMENT_COOLDOWN', 30),
            app.config.get('ASSESSMENT_COOLDOWN_UNIT', 'days')
        )
    )
    app.extensions['assessment_engine'] = engine
    app.extensions['assessment_backend'] = backend

    # Create tables
    with app.app_context():
        db.create_all()
        logger.info("Database tables created")

    def owner_id():
        return request.headers.get('X-Owner-Id', '').strip()

    def owner_required():
        return jsonify({'error': 'OWNER_REQUIRED', 'detail': 'X-Owner-Id header required'}), 400

    # =============================================================================
    # API Routes - Runs
    # =============================================================================

    @app.route('/api/assessments/start', methods=['POST'])
    def api_start_assessment():
        """Start a new run or resume the open draft"""
        owner = owner_id()
        if not owner:
            return owner_required()
        run = backend.start_run(owner)
        return jsonify({'success': True, 'assessment': run}), 201

    @app.route('/api/assessments/current', methods=['GET'])
    def api_current_assessment():
        """Owner's open draft or latest run"""
        owner = owner_id()
        if not owner:
            return owner_required()
        return jsonify({'assessment': backend.get_current_run(owner)})

    @app.route('/api/assessments/history', methods=['GET'])
    def api_assessment_history():
        """Submitted runs, newest first"""
        owner = owner_id()
        if not owner:
            return owner_required()
        return jsonify({'assessments': backend.get_history(owner)})

    # =============================================================================
    # API Routes - Questionnaire
    # =============================================================================

    @app.route('/api/assessments/<run_id>/sections', methods=['GET'])
    def api_sections(run_id):
        """Sections with per-section progress"""
        return jsonify({'sections': backend.get_sections(run_id)})

    @app.route('/api/assessments/<run_id>/questions', methods=['GET'])
    def api_questions(run_id):
        """Questions of one section with saved answers"""
        section_code = request.args.get('section', '')
        if engine.bank.get_section(section_code) is None:
            return jsonify({'error': 'UNKNOWN_SECTION', 'detail': f"Unknown section '{section_code}'"}), 404
        return jsonify({
            'section': section_code,
            'questions': backend.get_questions(run_id, section_code)
        })

    @app.route('/api/question-bank', methods=['GET'])
    def api_question_bank():
        """Full questionnaire definition"""
        return jsonify(engine.bank.to_dict())

    # =============================================================================
    # API Routes - Answers & Submission
    # =============================================================================

    @app.route('/api/assessments/<run_id>/answers', methods=['PATCH'])
    @limiter.limit("600 per minute")
    def api_save_answers(run_id):
        """Upsert a batch of answers: {"answers": [{"question": code, "data": {...}}]}"""
        data = request.get_json(silent=True) or {}
        answers = data.get('answers')
        if not isinstance(answers, list):
            return jsonify({'error': 'BAD_REQUEST', 'detail': 'answers must be a list'}), 400
        return jsonify(backend.save_answers(run_id, answers))

    @app.route('/api/assessments/<run_id>/submit', methods=['POST'])
    def api_submit(run_id):
        """Score and lock the run"""
        return jsonify(backend.submit(run_id))

    @app.route('/api/assessments/<run_id>/results', methods=['GET'])
    def api_results(run_id):
        """Stored result of a submitted run"""
        return jsonify(backend.get_result(run_id))

    @app.route('/api/assessments/<run_id>/reset', methods=['POST'])
    def api_reset(run_id):
        """Discard all answers of a draft"""
        return jsonify({'success': True, 'assessment': backend.reset_run(run_id)})

    @app.route('/api/health', methods=['GET'])
    def api_health():
        return jsonify({
            'status': 'healthy',
            'app': app.config['APP_NAME'],
            'sections': len(engine.bank.sections),
            'questions': len(engine.bank.question_codes),
            'autosave_debounce_ms': app.config['ASSESSMENT_DEBOUNCE_MS']
        })

    # =============================================================================
    # Error Handlers
    # =============================================================================

    @app.errorhandler(AssessmentError)
    def assessment_error(e):
        db.session.rollback()
        status = status_for(e)
        logger.warning(f"{request.method} {request.path} -> {status}: {e}")
        return jsonify(e.to_dict()), status

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f"Server error: {e}")
        return jsonify({'error': 'Internal server error'}), 500

    return app


# =============================================================================
# Main
# =============================================================================

app = create_app()

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5101))
    debug = os.environ.get('FLASK_DEBUG', 'True').lower() == 'true'
    app.run(debug=debug, port=port, host='0.0.0.0')
