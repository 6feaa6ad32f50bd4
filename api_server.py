#!/usr/bin/env python3
"""
medterm REST API Server
Provides HTTP endpoints for page renderers to standardize, annotate and describe medical content
"""

from flask import Flask, request, jsonify
from flask_cors import CORS
import logging
import sys

from medterm.core.config import SUPPORTED_LOCALES, validate_locale
from medterm.core.engine import TerminologyEngine
from medterm.core.exceptions import (
    CitationNotFoundError,
    EntityNotFoundError,
    UnsupportedLocaleError,
)

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)  # Enable CORS for the site frontend

# Global engine (initialized once)
engine = None


def initialize_components(custom_engine=None):
    """Initialize the terminology engine"""
    global engine

    try:
        engine = custom_engine or TerminologyEngine()
        logger.info("TerminologyEngine loaded")
        return True

    except Exception as e:
        logger.error(f"Failed to initialize medterm: {e}")
        return False


def get_engine():
    if engine is None:
        initialize_components()
    return engine


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def _locale(data):
    return data.get('locale', 'en')


@app.errorhandler(UnsupportedLocaleError)
def handle_unsupported_locale(e):
    return jsonify({"error": str(e), "supported_locales": list(SUPPORTED_LOCALES)}), 400


@app.errorhandler(EntityNotFoundError)
@app.errorhandler(CitationNotFoundError)
def handle_not_found(e):
    return jsonify({"error": str(e)}), 404


@app.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    return jsonify({"status": "healthy", "message": "medterm API is running"})


@app.route('/api/standardize', methods=['POST'])
def standardize():
    """Standardize one term or a list of terms"""
    data = _json_body()
    if data is None:
        return jsonify({"error": "Expected a JSON object"}), 400

    locale = _locale(data)
    validate_locale(locale)
    if 'terms' in data:
        terms = data['terms']
        if not isinstance(terms, list) or not all(isinstance(t, str) for t in terms):
            return jsonify({"error": "'terms' must be a list of strings"}), 400
        return jsonify({
            "locale": locale,
            "results": {term: get_engine().standardize(term, locale) for term in terms},
        })

    term = data.get('term')
    if not isinstance(term, str) or not term:
        return jsonify({"error": "No term provided"}), 400

    return jsonify({
        "term": term,
        "locale": locale,
        "standard_term": get_engine().standardize(term, locale),
        "entity_key": get_engine().get_entity_key(term),
    })


@app.route('/api/synonyms', methods=['POST'])
def synonyms():
    """List synonyms of a term"""
    data = _json_body()
    if data is None or not isinstance(data.get('term'), str) or not data['term']:
        return jsonify({"error": "No term provided"}), 400

    locale = _locale(data)
    return jsonify({
        "term": data['term'],
        "locale": locale,
        "synonyms": get_engine().get_synonyms(data['term'], locale),
    })


@app.route('/api/equivalent', methods=['POST'])
def equivalent():
    """Check whether two terms name the same concept"""
    data = _json_body()
    if data is None:
        return jsonify({"error": "Expected a JSON object"}), 400

    term_a = data.get('term_a')
    term_b = data.get('term_b')
    if not isinstance(term_a, str) or not isinstance(term_b, str):
        return jsonify({"error": "'term_a' and 'term_b' are required"}), 400

    return jsonify({
        "term_a": term_a,
        "term_b": term_b,
        "equivalent": get_engine().terms_equivalent(term_a, term_b),
    })


@app.route('/api/annotate', methods=['POST'])
def annotate():
    """Mark medical terms in a text"""
    data = _json_body()
    if data is None or not isinstance(data.get('text'), str):
        return jsonify({"error": "No text provided"}), 400

    text = data['text']
    locale = _locale(data)
    response = {
        "locale": locale,
        "annotated": get_engine().mark_terms(text, locale),
    }
    if data.get('include_terms'):
        response["terms"] = [
            {"standard_term": term, "entity_key": key}
            for term, key in get_engine().extract_terms(text, locale)
        ]
    return jsonify(response)


@app.route('/api/schema', methods=['POST'])
def schema():
    """Generate MedicalWebPage structured data"""
    data = _json_body()
    if data is None:
        return jsonify({"error": "Expected a JSON object"}), 400

    missing = [field for field in ('title', 'condition') if not data.get(field)]
    if missing:
        return jsonify({"error": f"Missing fields: {', '.join(missing)}"}), 400

    citations = data.get('citations', [])
    if not isinstance(citations, list):
        return jsonify({"error": "'citations' must be a list"}), 400

    result = get_engine().generate_webpage_schema(
        title=data['title'],
        description=data.get('description', ''),
        condition=data['condition'],
        citations=citations,
        locale=_locale(data),
        url=data.get('url'),
        last_reviewed=data.get('last_reviewed'),
        reviewed_by=data.get('reviewed_by'),
    )
    return jsonify(result)


@app.route('/api/stats', methods=['GET'])
def get_stats():
    """Get dictionary and cache statistics"""
    return jsonify({
        "dictionary": get_engine().dictionary.get_stats(),
        "caches": get_engine().get_cache_stats(),
    })


@app.route('/api/cache/clear', methods=['POST'])
def clear_cache():
    """Clear compiled patterns and result caches"""
    get_engine().clear_caches()
    return jsonify({"success": True, "caches": get_engine().get_cache_stats()})


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    print("Starting medterm API server...")

    if initialize_components():
        print("\nStarting Flask server on http://localhost:8000")
        print("Press Ctrl+C to stop\n")
        app.run(host='0.0.0.0', port=8000)
    else:
        print("Failed to start medterm API server")
        sys.exit(1)
