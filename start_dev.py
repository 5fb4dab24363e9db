#!/usr/bin/env python3
"""
Impact Assessment Platform - Development Launcher

Prepares a local database, optionally seeds submitted demo assessments,
prints what the questionnaire and the seeded results look like, then
serves the REST API.

Usage:
    python start_dev.py                  # Serve on port 5101
    python start_dev.py --demo           # Seed demo assessments first
    python start_dev.py --summary-only   # Print the summary and exit
    python start_dev.py --install        # pip install -e . before starting
"""

import os
import sys
import argparse
import subprocess
from pathlib import Path

PROJECT_DIR = Path(__file__).parent


def install_project():
    """Install the project and its dependencies from pyproject.toml"""
    subprocess.check_call([sys.executable, '-m', 'pip', 'install', '-e', str(PROJECT_DIR), '-q'])


def configure_environment(db_name='impact_assessment_dev.db'):
    os.environ.setdefault('FLASK_ENV', 'development')
    instance_dir = PROJECT_DIR / 'instance'
    instance_dir.mkdir(exist_ok=True)
    os.environ.setdefault('DATABASE_URL', f'sqlite:///{instance_dir / db_name}')


def print_question_bank(engine):
    bank = engine.bank
    print(f"Questionnaire: {len(bank.sections)} sections, {len(bank.question_codes)} questions")
    for section in bank.sections:
        questions = bank.questions_for_section(section.code)
        conditional = sum(1 for q in questions if q.is_conditional)
        print(f"  {section.code:<16} weight {section.weight}  "
              f"{len(questions)} questions ({conditional} conditional)")


def seed_demo_assessments(app, count):
    """Submit demo assessments unless the database already has runs"""
    from src.database.models import Assessment
    from src.demo_data import load_demo_data_to_db

    backend = app.extensions['assessment_backend']
    existing = Assessment.query.count()
    if existing:
        print(f"Database already holds {existing} assessments; not seeding")
        return []
    run_ids = load_demo_data_to_db(backend, count=count)
    print(f"Seeded {len(run_ids)} submitted demo assessments")
    return run_ids


def print_results(app, run_ids):
    backend = app.extensions['assessment_backend']
    for run_id in run_ids:
        result = backend.get_result(run_id)
        eligible = 'eligible' if result['loan_eligible'] else 'not eligible'
        print(f"  {run_id[:8]}  overall {result['overall_score']:>6}  {eligible:<12}  "
              f"{result['instrument_name']}")


def main():
    parser = argparse.ArgumentParser(description='Impact Assessment Platform development launcher')
    parser.add_argument('--demo', action='store_true', help='Seed submitted demo assessments')
    parser.add_argument('--demo-count', type=int, default=4, help='Demo assessments to seed (default: 4)')
    parser.add_argument('--port', type=int, default=5101, help='Port to serve on (default: 5101)')
    parser.add_argument('--host', default='127.0.0.1', help='Host to bind to (default: 127.0.0.1)')
    parser.add_argument('--install', action='store_true', help='pip install -e . before starting')
    parser.add_argument('--summary-only', action='store_true', help='Print the summary and exit')
    args = parser.parse_args()

    if args.install:
        install_project()
    configure_environment()

    sys.path.insert(0, str(PROJECT_DIR))
    from web.app import create_app

    app = create_app()
    with app.app_context():
        print_question_bank(app.extensions['assessment_engine'])
        if args.demo:
            print_results(app, seed_demo_assessments(app, args.demo_count))

    if args.summary_only:
        return

    print(f"Serving on http://{args.host}:{args.port}/api/health")
    app.run(debug=True, port=args.port, host=args.host, use_reloader=False)


if __name__ == '__main__':
    main()
