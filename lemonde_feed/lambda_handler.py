"""Main Lambda handler for Le Monde feed reader."""

import json
import os
from dataclasses import asdict
from datetime import UTC, datetime
from typing import Any

import boto3
import requests

from .article import ArticleFetcher
from .config import Config, FeedConfig
from .controller import FeedController
from .logging_config import ExecutionLogger, create_execution_logger, setup_structured_logging
from .premium import PremiumEnricher
from .presentation import build_screen
from .rss import FeedFetcher, FetchError

# Setup structured logging
setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"))

ENRICHMENT_TIMEOUT_SECONDS = 20


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Load a section feed, flag premium articles and return the screen rows.

    Event keys (all optional): ``section`` (a configured section key),
    ``uri`` (feed path), ``subPath`` (index page path), ``title`` and
    ``refresh``. Explicit ``uri``/``subPath`` win over the section.
    An ``article`` key (an article URL, with an optional ``tweets`` flag)
    returns that page split into content blocks instead of the feed.

    Args:
        event: Lambda event data
        context: Lambda context object

    Returns:
        Response dictionary with status and screen model
    """
    execution_id = f"lambda_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    main_logger = create_execution_logger("main", execution_id)

    main_logger.log_execution_start(
        lambda_request_id=getattr(context, "aws_request_id", "unknown"),
        lambda_function_name=getattr(context, "function_name", "unknown"),
    )

    event = event or {}
    metrics = {
        "items_found": 0,
        "items_restricted": 0,
        "fetch_failed": False,
        "errors": [],
    }

    try:
        config = Config()
        feed_config = config.get_feed_config()
        main_logger.info("Configuration initialized", host=feed_config.host)

        if event.get("article"):
            return _article_response(event, feed_config, execution_id, main_logger)

        path = event.get("uri")
        sub_path = event.get("subPath")
        title = event.get("title")
        if event.get("section"):
            section = config.get_section(event["section"])
            path = path or section.feed_path
            sub_path = sub_path or section.sub_path
            title = title or section.title
            main_logger.info(f"Processing section: {section.key}", section=section.key)

        session = requests.Session()
        controller = FeedController(
            FeedFetcher(feed_config, session=session, execution_id=execution_id),
            PremiumEnricher(feed_config, session=session, execution_id=execution_id),
            execution_id=execution_id,
        )
        try:
            state = controller.load(path, sub_path, refreshing=bool(event.get("refresh")))
            if not state.fetch_failed:
                controller.wait_for_enrichment(ENRICHMENT_TIMEOUT_SECONDS)
        finally:
            # An enrichment pass still running past the timeout is abandoned
            controller.close(wait=False)
        state = controller.state

        screen = build_screen(state, feed_config.host, title or "À la une")

        metrics["items_found"] = len(state.items)
        metrics["items_restricted"] = sum(1 for item in state.items if item.is_restricted)
        metrics["fetch_failed"] = state.fetch_failed
        if state.fetch_failed:
            metrics["errors"].append("Feed fetch failed")

        main_logger.log_metrics(metrics)
        send_cloudwatch_metrics(
            metrics, config.aws_region, execution_id, config.metrics_namespace
        )
        main_logger.log_execution_end(success=not state.fetch_failed, metrics=metrics)

        return {
            "statusCode": 502 if state.fetch_failed else 200,
            "body": json.dumps(
                {
                    "execution_id": execution_id,
                    "fetch_failed": state.fetch_failed,
                    "screen": asdict(screen),
                    "metrics": metrics,
                },
                ensure_ascii=False,
                default=_json_default,
            ),
        }

    except Exception as e:
        error_msg = f"Critical error in Lambda handler: {str(e)}"
        main_logger.error(error_msg, error=str(e))
        metrics["errors"].append(error_msg)

        send_cloudwatch_metrics(
            metrics,
            config.aws_region if "config" in locals() else "eu-west-3",
            execution_id,
        )
        main_logger.log_execution_end(success=False, metrics=metrics, error=error_msg)

        return {
            "statusCode": 500,
            "body": json.dumps(
                {
                    "message": "Feed loading failed",
                    "execution_id": execution_id,
                    "error": error_msg,
                    "metrics": metrics,
                }
            ),
        }


def _article_response(
    event: dict[str, Any],
    feed_config: FeedConfig,
    execution_id: str,
    main_logger: ExecutionLogger,
) -> dict[str, Any]:
    """Fetch one article page; a download failure answers 502."""
    url = event["article"]
    fetcher = ArticleFetcher(
        feed_config, session=requests.Session(), execution_id=execution_id
    )
    try:
        article = fetcher.fetch_article(url, include_tweets=bool(event.get("tweets")))
    except FetchError as e:
        main_logger.log_execution_end(success=False, error=str(e))
        return {
            "statusCode": 502,
            "body": json.dumps(
                {"execution_id": execution_id, "article_url": url, "error": str(e)}
            ),
        }

    main_logger.log_execution_end(success=True, article_url=url)
    return {
        "statusCode": 200,
        "body": json.dumps(
            {"execution_id": execution_id, "article": asdict(article)},
            ensure_ascii=False,
            default=_json_default,
        ),
    }


def _json_default(value: Any) -> Any:
    if hasattr(value, "value"):
        return value.value  # Enum members
    return str(value)


def send_cloudwatch_metrics(
    metrics: dict[str, Any],
    aws_region: str,
    execution_id: str,
    namespace: str = "LeMonde-Feed",
) -> None:
    """
    Send custom metrics to CloudWatch.

    Args:
        metrics: Dictionary containing execution metrics
        aws_region: AWS region for CloudWatch client
        execution_id: Execution ID for logging context
        namespace: CloudWatch namespace
    """
    metrics_logger = create_execution_logger("cloudwatch_metrics", execution_id)

    try:
        metrics_logger.info("Sending metrics to CloudWatch", metrics=metrics)
        cloudwatch = boto3.client("cloudwatch", region_name=aws_region)

        dimensions = [{"Name": "ExecutionId", "Value": execution_id}]
        metric_data = [
            {
                "MetricName": "ItemsFound",
                "Value": metrics["items_found"],
                "Unit": "Count",
                "Dimensions": dimensions,
            },
            {
                "MetricName": "ItemsRestricted",
                "Value": metrics["items_restricted"],
                "Unit": "Count",
                "Dimensions": dimensions,
            },
            {
                "MetricName": "FetchFailure",
                "Value": 1 if metrics["fetch_failed"] else 0,
                "Unit": "Count",
                "Dimensions": dimensions,
            },
            {
                "MetricName": "Errors",
                "Value": len(metrics["errors"]),
                "Unit": "Count",
                "Dimensions": dimensions,
            },
            {
                "MetricName": "RestrictedRate",
                "Value": (metrics["items_restricted"] / max(metrics["items_found"], 1))
                * 100,
                "Unit": "Percent",
                "Dimensions": dimensions,
            },
        ]

        cloudwatch.put_metric_data(Namespace=namespace, MetricData=metric_data)

        metrics_logger.info(
            "Successfully sent metrics to CloudWatch",
            metrics_sent=len(metric_data),
            namespace=namespace,
        )

    except Exception as e:
        metrics_logger.error(f"Failed to send CloudWatch metrics: {e}", error=str(e))
        # Don't raise - metrics failure shouldn't break the main flow
