"""
Forecast Engine - Flask Web Application

JSON API over the forecasting and simulation engine: expense predictions,
cash-flow projections, what-if scenarios, affordability checks and
inflation impact.

Authentication lives in front of this service; the caller is identified by
the `X-User-Id` header.
"""

import os
import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

from flask import Flask, request, jsonify, g
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from config.settings import get_config
from forecast_engine import ForecastEngine, EngineSettings, MAX_PROJECTION_MONTHS
from forecast_engine.database import db, SQLAlchemyFinanceRepository
from forecast_engine.forecasting import ProjectionScenario, schedule_prediction_refresh
from forecast_engine.forecasting.time_series import add_months, month_start
from forecast_engine.patterns import AffordabilityRequest
from forecast_engine.simulation import InflationSimulationInput, ScenarioInput, ScenarioType

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

MAX_INFLATION_RATE = 1000.0
# Rates at or below -100% make the compounding base non-positive
MIN_INFLATION_RATE = -99.0
MAX_INFLATION_PERIOD_MONTHS = 600


class RequestValidationError(ValueError):
    """Malformed or out-of-range request input."""


# =============================================================================
# Input parsing
# =============================================================================

def parse_month(value: Optional[str]) -> Optional[date]:
    """YYYY-MM (or a full ISO date) -> first day of that month."""
    if not value:
        return None
    try:
        if len(value) == 7:
            return datetime.strptime(value, '%Y-%m').date()
        return month_start(date.fromisoformat(value[:10]))
    except ValueError:
        raise RequestValidationError(f"Invalid month '{value}', expected YYYY-MM")


def parse_date(value: Any, field_name: str) -> date:
    if not isinstance(value, str):
        raise RequestValidationError(f"'{field_name}' is required (YYYY-MM-DD)")
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise RequestValidationError(f"Invalid date for '{field_name}': '{value}'")


def require_number(
    data: Dict[str, Any],
    field_name: str,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
    default: Optional[float] = None
) -> float:
    value = data.get(field_name, default)
    if value is None:
        raise RequestValidationError(f"'{field_name}' is required")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RequestValidationError(f"'{field_name}' must be a number")
    if minimum is not None and value < minimum:
        raise RequestValidationError(f"'{field_name}' must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise RequestValidationError(f"'{field_name}' must be <= {maximum}")
    return float(value)


def parse_months(value: Optional[str], default: int) -> int:
    """Projection horizon from a query string, 1..MAX_PROJECTION_MONTHS."""
    if value is None:
        return default
    try:
        months = int(value)
    except ValueError:
        raise RequestValidationError("'months' must be an integer")
    if not 1 <= months <= MAX_PROJECTION_MONTHS:
        raise RequestValidationError(f"'months' must be between 1 and {MAX_PROJECTION_MONTHS}")
    return months


def optional_int(data: Dict[str, Any], field_name: str, minimum: int = 1) -> Optional[int]:
    value = data.get(field_name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise RequestValidationError(f"'{field_name}' must be an integer")
    if value < minimum:
        raise RequestValidationError(f"'{field_name}' must be >= {minimum}")
    return value


def json_object(payload: Any) -> Dict[str, Any]:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise RequestValidationError("Expected a JSON object")
    return payload


def parse_scenario_input(data: Dict[str, Any]) -> ScenarioInput:
    data = json_object(data)
    try:
        scenario_type = ScenarioType(data.get('type'))
    except ValueError:
        raise RequestValidationError(
            f"'type' must be one of {[t.value for t in ScenarioType]}"
        )

    end_date = data.get('end_date')
    return ScenarioInput(
        type=scenario_type,
        amount=require_number(data, 'amount', minimum=0),
        start_date=parse_date(data.get('start_date'), 'start_date'),
        installments=optional_int(data, 'installments'),
        end_date=parse_date(end_date, 'end_date') if end_date else None,
        description=data.get('description')
    )


# =============================================================================
# App Factory
# =============================================================================

def create_app(config_class=None):
    """Create Flask application"""
    app = Flask(__name__)

    # Load configuration
    if config_class is None:
        config_class = get_config()
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)

    # Rate limiting
    Limiter(
        key_func=get_remote_address,
        app=app,
        default_limits=[app.config.get('RATELIMIT_DEFAULT', '100 per minute')]
    )

    # Create tables
    with app.app_context():
        db.create_all()
        logger.info("Database tables created")

    engine_settings = EngineSettings.from_config(app.config)

    def build_engine() -> ForecastEngine:
        return ForecastEngine(SQLAlchemyFinanceRepository(), engine_settings)

    app.extensions['prediction_scheduler'] = schedule_prediction_refresh(
        app, lambda: build_engine().refresh_job()
    )

    @app.before_request
    def load_engine():
        if request.path.startswith('/api/'):
            g.engine = build_engine()

    def current_user_id() -> str:
        user_id = request.headers.get('X-User-Id')
        if not user_id:
            raise PermissionError('X-User-Id header required')
        return user_id

    # =============================================================================
    # API Routes - Predictions
    # =============================================================================

    @app.route('/api/predictions/variable-expenses', methods=['GET'])
    def api_variable_expenses():
        """Predict every variable category for a month"""
        user_id = current_user_id()
        target_month = parse_month(request.args.get('month'))

        predictions = g.engine.predict_variable_expenses(user_id, target_month)
        month = target_month or month_start(date.today())

        return jsonify({
            'month': month.strftime('%Y-%m'),
            'predictions': [p.to_dict() for p in predictions]
        })

    @app.route('/api/predictions/variable-categories', methods=['GET'])
    def api_variable_categories():
        """Variability verdict for every expense category"""
        user_id = current_user_id()
        verdicts = [
            g.engine.predictor.classify(user_id, category_id).to_dict()
            for category_id in g.engine.repository.list_category_ids(user_id)
        ]
        return jsonify({'categories': verdicts})

    @app.route('/api/predictions/category/<category_id>', methods=['GET'])
    def api_category_prediction(category_id):
        """Predict one category (next month by default)"""
        user_id = current_user_id()
        target_month = parse_month(request.args.get('month')) or add_months(date.today(), 1)

        prediction = g.engine.predict_category_expense(user_id, category_id, target_month)
        if prediction is None:
            return jsonify({
                'category_id': category_id,
                'prediction': None,
                'reason': 'Need at least 3 months of history for a prediction'
            })
        return jsonify({'category_id': category_id, 'prediction': prediction.to_dict()})

    @app.route('/api/predictions/refresh', methods=['POST'])
    def api_refresh_predictions():
        """Regenerate the cached predictions for the caller"""
        user_id = current_user_id()
        data = json_object(request.get_json(silent=True))
        target_month = parse_month(data.get('month')) or month_start(date.today())

        saved = g.engine.refresh_job().refresh_user(user_id, target_month)
        logger.info(f"Refreshed {saved} cached predictions for user {user_id}")
        return jsonify({'success': True, 'month': target_month.strftime('%Y-%m'), 'saved': saved})

    # =============================================================================
    # API Routes - Projections
    # =============================================================================

    @app.route('/api/projections/cash-flow', methods=['GET'])
    def api_cash_flow():
        """Month-by-month cash-flow projection"""
        user_id = current_user_id()
        months = parse_months(request.args.get('months'), 6)

        try:
            scenario = ProjectionScenario(request.args.get('scenario', 'REALISTIC').upper())
        except ValueError:
            raise RequestValidationError(
                f"'scenario' must be one of {[s.value for s in ProjectionScenario]}"
            )

        projection = g.engine.calculate_cash_flow(user_id, months, scenario)
        return jsonify(projection.to_dict())

    @app.route('/api/projections/balance-forecast', methods=['GET'])
    def api_balance_forecast():
        """Accumulated balance at the end of the projection"""
        user_id = current_user_id()
        months = parse_months(request.args.get('months'), 1)

        return jsonify(g.engine.projector.balance_forecast(user_id, months).to_dict())

    # =============================================================================
    # API Routes - Scenarios
    # =============================================================================

    @app.route('/api/scenarios/simulate', methods=['POST'])
    def api_simulate_scenario():
        """Simulate a what-if scenario"""
        user_id = current_user_id()
        scenario = parse_scenario_input(request.get_json(silent=True))
        return jsonify(g.engine.simulate_scenario(user_id, scenario).to_dict())

    @app.route('/api/scenarios/compare', methods=['POST'])
    def api_compare_scenarios():
        """Simulate several scenarios side by side"""
        user_id = current_user_id()
        payload = request.get_json(silent=True)
        if not isinstance(payload, list) or not payload:
            raise RequestValidationError('Expected a non-empty list of scenarios')

        scenarios = [parse_scenario_input(item) for item in payload]
        results = g.engine.simulator.compare(user_id, scenarios)
        return jsonify({'results': [r.to_dict() for r in results]})

    # =============================================================================
    # API Routes - Affordability
    # =============================================================================

    @app.route('/api/affordability/check', methods=['POST'])
    def api_affordability_check():
        """Score whether a purchase is affordable now"""
        user_id = current_user_id()
        data = json_object(request.get_json(silent=True))

        category_id = data.get('category_id')
        if not category_id:
            raise RequestValidationError("'category_id' is required")

        affordability_request = AffordabilityRequest(
            amount=require_number(data, 'amount', minimum=0),
            category_id=category_id,
            installments=optional_int(data, 'installments'),
            payment_method=data.get('payment_method')
        )
        return jsonify(g.engine.check_affordability(user_id, affordability_request).to_dict())

    # =============================================================================
    # API Routes - Inflation
    # =============================================================================

    @app.route('/api/simulations/inflation/impact', methods=['POST'])
    def api_inflation_impact():
        """Project inflation impact on purchasing power, goals and budgets"""
        user_id = current_user_id()
        data = json_object(request.get_json(silent=True))

        params = InflationSimulationInput(
            inflation_rate=require_number(data, 'inflation_rate', MIN_INFLATION_RATE, MAX_INFLATION_RATE),
            salary_adjustment=require_number(data, 'salary_adjustment', MIN_INFLATION_RATE, MAX_INFLATION_RATE),
            period_months=int(require_number(
                data, 'period_months', 1, MAX_INFLATION_PERIOD_MONTHS, default=12
            ))
        )
        return jsonify(g.engine.simulate_inflation(user_id, params).to_dict())

    @app.route('/api/simulations/inflation/scenarios', methods=['GET'])
    def api_inflation_scenarios():
        """Preset inflation scenarios"""
        return jsonify({'scenarios': g.engine.inflation.preset_scenarios()})

    # =============================================================================
    # Error Handlers
    # =============================================================================

    @app.errorhandler(RequestValidationError)
    def bad_request(e):
        return jsonify({'error': str(e)}), 400

    @app.errorhandler(PermissionError)
    def unauthorized(e):
        return jsonify({'error': str(e)}), 401

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

if __name__ == '__main__':
    app = create_app()
    port = int(os.environ.get('PORT', 5000))
    debug = os.environ.get('FLASK_DEBUG', 'True').lower() == 'true'
    app.run(debug=debug, port=port, host='0.0.0.0')
