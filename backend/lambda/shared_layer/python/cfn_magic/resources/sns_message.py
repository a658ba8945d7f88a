"""SnsMessage - publish a message when the resource is created.

Set ``SendOnUpdate`` to ``"true"`` to publish again on every stack update.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..resource import ResourceRequest, ResourceResult, as_bool, region_from_arn, require

logger = logging.getLogger(__name__)


class SnsMessage:
    def __init__(self, request: ResourceRequest) -> None:
        props = request.properties
        self.topic_arn = require(props, "SnsTopicArn")
        self.subject = require(props, "Subject")
        self.message = require(props, "Message")
        self.send_on_update = as_bool(props.get("SendOnUpdate"))
        self.sns = request.clients("sns", region_from_arn(self.topic_arn))

    def create(self) -> Optional[ResourceResult]:
        resp = self.sns.publish(TopicArn=self.topic_arn, Subject=self.subject, Message=self.message)
        logger.info("[INFO] Published message %s to %s", resp.get("MessageId"), self.topic_arn)
        return None

    def modify(self) -> Optional[ResourceResult]:
        if not self.send_on_update:
            return None
        return self.create()

    def remove(self) -> Optional[ResourceResult]:
        return None
