"""SnsSubscription - subscribe an endpoint to an SNS topic.

    {
      "Type": "Custom::SnsSubscription",
      "Properties": {
        "ServiceToken": "arn:aws:lambda:us-east-1:123456789012:function:magic-resources",
        "SnsTopicArn": "arn:aws:sns:us-east-1:123456789012:my-sns-topic",
        "Protocol": "email",
        "Endpoint": "somebody@somewhere.com"
      }
    }

SNS hands out no stable id until an email subscription is confirmed, so the
subscription is located by endpoint when it has to be removed.

Updates unsubscribe the prior endpoint from the prior topic, then subscribe
the new one.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError

from ..errors import error_code
from ..reconcile import paginated_search
from ..resource import ResourceRequest, ResourceResult, region_from_arn, require

logger = logging.getLogger(__name__)

PENDING_CONFIRMATION = "PendingConfirmation"
_TOPIC_MISSING_CODES = {"NotFound", "InvalidParameter", "InvalidClientTokenId"}


class SnsSubscription:
    def __init__(self, request: ResourceRequest) -> None:
        props = request.properties
        self.topic_arn = require(props, "SnsTopicArn")
        self.protocol = require(props, "Protocol")
        self.endpoint = require(props, "Endpoint")
        self.sns = request.clients("sns", region_from_arn(self.topic_arn))

        old = request.old_properties or {}
        self.old_topic_arn: str = old.get("SnsTopicArn") or self.topic_arn
        self.old_endpoint: str = old.get("Endpoint") or self.endpoint
        if self.old_topic_arn == self.topic_arn:
            self.old_sns = self.sns
        else:
            self.old_sns = request.clients("sns", region_from_arn(self.old_topic_arn))

    def create(self) -> Optional[ResourceResult]:
        logger.info("[INFO] Subscribing %s to %s", self.endpoint, self.topic_arn)
        self.sns.subscribe(TopicArn=self.topic_arn, Protocol=self.protocol, Endpoint=self.endpoint)
        return None

    def modify(self) -> Optional[ResourceResult]:
        # The subscription may have moved topics; unsubscribe where it used to live.
        self._unsubscribe(self.old_sns, self.old_topic_arn, self.old_endpoint)
        return self.create()

    def find_subscription(
        self,
        endpoint: str,
        topic_arn: Optional[str] = None,
        sns: Any = None,
    ) -> Optional[Dict[str, Any]]:
        topic_arn = topic_arn or self.topic_arn
        sns = sns or self.sns

        def list_page(token: Optional[str]) -> Dict[str, Any]:
            params = {"TopicArn": topic_arn}
            if token:
                params["NextToken"] = token
            return sns.list_subscriptions_by_topic(**params)

        return paginated_search(
            list_page,
            "Subscriptions",
            lambda subscription: subscription.get("Endpoint") == endpoint,
        )

    def _unsubscribe(self, sns: Any, topic_arn: str, endpoint: str) -> None:
        logger.info("[INFO] Searching %s for subscription to delete: %s", topic_arn, endpoint)

        try:
            subscription = self.find_subscription(endpoint, topic_arn, sns)
        except ClientError as exc:
            if error_code(exc) in _TOPIC_MISSING_CODES:
                logger.info("[INFO] No topic %s found", topic_arn)
                return
            raise

        if subscription is None:
            logger.info("[INFO] No subscription found")
            return

        arn = subscription.get("SubscriptionArn")
        if arn == PENDING_CONFIRMATION:
            logger.info("[INFO] Found pending subscription; SNS expires it on its own")
            return

        logger.info("[INFO] Deleting subscription %s", arn)
        sns.unsubscribe(SubscriptionArn=arn)

    def remove(self) -> Optional[ResourceResult]:
        self._unsubscribe(self.sns, self.topic_arn, self.endpoint)
        return None
