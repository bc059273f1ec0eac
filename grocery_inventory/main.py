import argparse
import json
import sys
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from tabulate import tabulate

from grocery_inventory.cache import TTLCache
from grocery_inventory.config import config
from grocery_inventory.db import db, session_scope
from grocery_inventory.exceptions import InventoryError
from grocery_inventory.logging_setup import logger, get_logger, log_exception
from grocery_inventory.services import (
    BatchService, OptimizationService, PredictionService, ReportingService
)
from grocery_inventory.utils.date_utils import convert_to_date

REPORT_TYPES = (
    'stock-value', 'expiration', 'low-stock', 'low-stock-alerts', 'supplier', 'category', 'turnover'
)


def init_application(connection_string=None):
    """Initialize application components."""
    db.initialize(connection_string)

    log = logger.app_logger
    log.info("Grocery Inventory System initialized")
    log.info(f"Using database: {config.get_db_url()}")

    return True


def setup_database(drop_existing=False):
    """Create (or recreate) the database schema."""
    log = get_logger('cli')

    db.initialize()
    if drop_existing:
        log.warning("Dropping existing tables")
        db.drop_all_tables()

    applied = db.migrate()
    if applied:
        log.info(f"Applied schema versions: {', '.join(str(v) for v in applied)}")
    else:
        log.info("Schema is up to date")


def to_jsonable(value):
    """Convert records, enums and dates to JSON-ready values."""
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, date):
        return value.isoformat()
    return value


def print_json(value):
    print(json.dumps(to_jsonable(value), indent=2))


def show_suggestion(args, session):
    suggestion = BatchService(session).suggest_batch(args.product_id, today=args.today)

    if args.json:
        print_json({'product_id': args.product_id, 'suggestion': suggestion})
        return

    if suggestion is None:
        print(f"No usable batch for product {args.product_id}")
        return

    batch = suggestion.batch
    print(f"\nSuggested batch for product {args.product_id}:")
    print(tabulate([[
        batch.id,
        batch.batch_number,
        batch.total_quantity,
        batch.expiry_date or '-',
        batch.location or '-',
        suggestion.urgency,
        suggestion.reason
    ]], headers=['Batch ID', 'Batch Number', 'Quantity', 'Expiry', 'Location', 'Urgency', 'Reason']))


def show_expiring(args, session):
    days = args.days if args.days is not None else config.business_rules['expiring_days_threshold']
    batches = BatchService(session).get_expiring_batches(days, today=args.today)

    if args.json:
        print_json(batches)
        return

    if not batches:
        print(f"No batches expiring within {days} days")
        return

    table_data = [
        [item.batch.id, item.product_name, item.batch.total_quantity,
         item.batch.expiry_date, item.days_until_expiry, item.urgency]
        for item in batches
    ]
    print(f"\nBatches expiring within {days} days:")
    print(tabulate(table_data, headers=['Batch ID', 'Product', 'Quantity', 'Expiry', 'Days', 'Urgency']))


def show_forecast(args, session):
    forecast = PredictionService(session).predict_demand(
        args.product_id,
        horizon=args.horizon,
        lookback=args.lookback,
        method=args.method,
        today=args.today
    )

    if args.json:
        print_json(forecast)
        return

    interval = forecast.confidence_interval
    print(f"\nDemand forecast for product {args.product_id} ({forecast.method}):")
    print(tabulate([
        ['Daily average', forecast.daily_average],
        [f'Next {forecast.horizon_days} days', forecast.horizon_forecast],
        ['Confidence interval', f"{interval.lower} - {interval.upper}"],
        ['Trend', forecast.trend],
        ['Confidence', f"{forecast.confidence} ({forecast.confidence_percent}%)"],
        ['Seasonality', f"{forecast.seasonality.period}-day" if forecast.seasonality.detected else 'none'],
        ['History points', forecast.history_points],
    ]))
    for recommendation in forecast.recommendations:
        print(f"  - {recommendation}")


def show_reorder(args, session):
    service = PredictionService(session, cache=TTLCache(config.cache_config['default_ttl']))

    if args.product_id:
        recommendations = [service.calculate_reorder_point(args.product_id, today=args.today)]
    else:
        recommendations = service.get_reorder_recommendations(today=args.today)

    if args.json:
        print_json(recommendations)
        return

    if not recommendations:
        print("No products need reordering")
        return

    table_data = [
        [rec.product_id, rec.product_name, rec.current_stock, rec.reorder_point,
         rec.optimal_order_quantity, rec.days_until_stockout, rec.stockout_risk,
         rec.status, rec.urgency]
        for rec in recommendations
    ]
    print("\nReorder recommendations:")
    print(tabulate(table_data, headers=[
        'Product ID', 'Name', 'Stock', 'Reorder Point', 'Order Qty',
        'Days Left', 'Risk', 'Status', 'Urgency'
    ]))


def show_abc(args, session):
    analysis = OptimizationService(session).abc_analysis()

    if args.json:
        print_json(analysis)
        return

    print(f"\nABC analysis of {analysis['total_products']} products (total value {analysis['total_value']}):")
    table_data = []
    for label, group in analysis['classifications'].items():
        for item in group['products']:
            table_data.append([label, item.product_id, item.name, item.inventory_value, item.value_percent])
    print(tabulate(table_data, headers=['Class', 'Product ID', 'Name', 'Value', '% of Total']))
    for recommendation in analysis['recommendations']:
        print(f"  - {recommendation}")


def show_optimization(args, session):
    report = OptimizationService(session).generate_optimization_report(today=args.today)

    if args.json:
        print_json(report)
        return

    summary = report['summary']
    print("\nInventory optimization summary:")
    print(tabulate([
        ['Total inventory value', summary['total_inventory_value']],
        ['Slow-moving items', summary['slow_moving_items']],
        ['Excess inventory value', summary['excess_inventory_value']],
        ['Potential annual savings', summary['potential_annual_savings']],
    ]))

    if report['slow_moving']:
        print("\nSlow-moving items:")
        print(tabulate(
            [[item['product'].name, item['product'].quantity, item['total_movement'],
              item['days_without_movement'], item['recommendation']] for item in report['slow_moving']],
            headers=['Name', 'Quantity', 'Moved', 'Days Idle', 'Recommendation']
        ))

    if report['excess']:
        print("\nExcess inventory:")
        print(tabulate(
            [[item['product'].name, item['product'].quantity, item['excess_quantity'],
              item['days_of_stock'], item['tied_up_capital']] for item in report['excess']],
            headers=['Name', 'Quantity', 'Excess', 'Days of Stock', 'Capital']
        ))

    for rec in report['top_recommendations']:
        print(f"  [{rec['priority']}] {rec['action']}: {rec['impact']}")


def show_report(args, session):
    service = ReportingService(session)

    if args.report_type == 'stock-value':
        report = service.stock_value_report()
        rows = [[line.product_id, line.name, line.category or "-", line.quantity, line.unit_cost, line.total_value]
                for line in report["products"]]
        headers = ['Product ID', 'Name', 'Category', 'Quantity', 'Unit Cost', 'Value']
        footer = f"Total value: {report['total_value']}  Total items: {report['total_items']}"
    elif args.report_type == 'expiration':
        report = service.expiration_report(today=args.today)
        rows = [[e.urgency, e.product_name, e.batch.total_quantity, e.batch.expiry_date, e.days_until_expiry]
                for bucket in ('expired', 'urgent', 'soon') for e in report[bucket]]
        headers = ['Urgency', 'Product', 'Quantity', 'Expiry', 'Days']
        footer = f"Dated batches: {len(report['all'])}"
    elif args.report_type == 'low-stock':
        report = service.low_stock_report()
        rows = [[line.product_id, line.name, line.quantity, line.reorder_point] for line in report["products"]]
        headers = ['Product ID', 'Name', 'Quantity', 'Reorder Point']
        footer = f"Low stock products: {len(rows)}"
    elif args.report_type == 'low-stock-alerts':
        report = service.low_stock_alerts(args.threshold)
        rows = [[line.product_id, line.name, line.quantity] for line in report]
        headers = ['Product ID', 'Name', 'Quantity']
        footer = f"Products below threshold: {len(rows)}"
    elif args.report_type in ('supplier', 'category'):
        if args.report_type == 'supplier':
            report = service.supplier_performance_report()
        else:
            report = service.category_breakdown_report()
        rows = [[g.name, g.product_count, g.total_items, g.total_value] for g in report]
        headers = ['Name', 'Products', 'Items', 'Value']
        footer = None
    else:
        report = service.inventory_turnover_report(args.start_date, args.end_date)
        rows, headers, footer = [], [], None

    if args.json:
        print_json(report)
        return

    print(f"\n{args.report_type} report:")
    print(tabulate(rows, headers=headers))
    if footer:
        print(f"\n{footer}")


COMMANDS = {
    'suggest': show_suggestion,
    'expiring': show_expiring,
    'forecast': show_forecast,
    'reorder': show_reorder,
    'abc': show_abc,
    'optimize': show_optimization,
    'report': show_report,
}


def build_parser():
    parser = argparse.ArgumentParser(description='Grocery Inventory System')

    parser.add_argument('--setup-db', action='store_true',
                        help='Set up the database schema')
    parser.add_argument('--drop-db', action='store_true',
                        help='Drop existing tables before setup')
    parser.add_argument('--json', action='store_true',
                        help='Print JSON instead of tables')
    parser.add_argument('--today', type=convert_to_date,
                        help='Reference date (YYYY-MM-DD), defaults to today')

    # Also accepted after the subcommand; SUPPRESS keeps a top-level value
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--today', type=convert_to_date, default=argparse.SUPPRESS,
                        help='Reference date (YYYY-MM-DD), defaults to today')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    suggest_parser = subparsers.add_parser('suggest', help='Suggest the next batch to use', parents=[common])
    suggest_parser.add_argument('product_id', type=int, help='Product ID')

    expiring_parser = subparsers.add_parser('expiring', help='List batches expiring soon', parents=[common])
    expiring_parser.add_argument('--days', type=int, help='Days ahead to look')

    forecast_parser = subparsers.add_parser('forecast', help='Forecast product demand', parents=[common])
    forecast_parser.add_argument('product_id', type=int, help='Product ID')
    forecast_parser.add_argument('--horizon', type=int, help='Days to forecast')
    forecast_parser.add_argument('--lookback', type=int, help='Days of history to use')
    forecast_parser.add_argument('--method', default='moving_average', help='Forecast method')

    reorder_parser = subparsers.add_parser('reorder', help='Reorder recommendations', parents=[common])
    reorder_parser.add_argument('--product-id', type=int, help='Single product to evaluate')

    subparsers.add_parser('abc', help='ABC analysis of active products', parents=[common])
    subparsers.add_parser('optimize', help='Slow-moving, excess and carrying cost analysis', parents=[common])

    report_parser = subparsers.add_parser('report', help='Inventory reports', parents=[common])
    report_parser.add_argument('report_type', choices=REPORT_TYPES, help='Report to generate')
    report_parser.add_argument('--start-date', type=convert_to_date, help='Period start (turnover)')
    report_parser.add_argument('--end-date', type=convert_to_date, help='Period end (turnover)')
    report_parser.add_argument('--threshold', type=int, help='Unit threshold (low-stock-alerts)')

    return parser


def main(argv=None):
    """Main application entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.setup_db:
        try:
            setup_database(args.drop_db)
        except InventoryError as e:
            get_logger('cli').error(str(e))
            return 1
        return 0

    if args.command is None:
        parser.print_help()
        return 0

    init_application()
    log = get_logger('cli')

    try:
        with session_scope() as session:
            COMMANDS[args.command](args, session)
    except InventoryError as e:
        log.error(str(e))
        if args.json:
            print_json(e.to_dict())
        return 1
    except SQLAlchemyError as e:
        log_exception('cli', e, "Database error")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
