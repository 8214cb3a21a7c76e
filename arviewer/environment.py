"""
Environment classification.

Derives what the visitor's browser can do from its user-agent string.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Pattern, Tuple


class Platform(str, Enum):
    IOS = "ios"
    ANDROID = "android"
    OTHER = "other"


@dataclass(frozen=True)
class SignatureRule:
    """A user-agent pattern that sets one flag."""
    flag: str
    pattern: Pattern
    excludes: Optional[Pattern] = None
    requires: Tuple[str, ...] = ()

    def matches(self, user_agent: str, flags: Dict[str, bool]) -> bool:
        if not all(flags.get(name) for name in self.requires):
            return False
        if not self.pattern.search(user_agent):
            return False
        return not (self.excludes and self.excludes.search(user_agent))


# Evaluated top to bottom; later rules may depend on earlier flags.
# Edge carries the Chrome marker and every iOS browser carries the Safari one,
# hence the exclusions.
SIGNATURE_RULES = (
    SignatureRule("ios_token", re.compile(r"iphone|ipad|ipod", re.I)),
    SignatureRule("android_token", re.compile(r"android", re.I)),
    SignatureRule("in_app_browser", re.compile(r"line/", re.I)),
    SignatureRule("is_chrome", re.compile(r"chrome/", re.I), excludes=re.compile(r"edg/", re.I)),
    SignatureRule(
        "is_safari",
        re.compile(r"safari", re.I),
        excludes=re.compile(r"crios|fxios|edgios|opios|line/", re.I),
        requires=("ios_token",),
    ),
)


@dataclass(frozen=True)
class CapabilityVector:
    """Per-session facts about the browser, computed once."""
    platform: Platform = Platform.OTHER
    is_safari: bool = False
    is_chrome: bool = False
    in_app_browser: bool = False

    @property
    def is_ios(self) -> bool:
        return self.platform is Platform.IOS

    @property
    def is_android(self) -> bool:
        return self.platform is Platform.ANDROID

    @property
    def supports_quick_look(self) -> bool:
        # In-app browsers never launch AR, whatever engine they wrap
        return self.is_ios and self.is_safari and not self.in_app_browser

    @property
    def supports_scene_viewer(self) -> bool:
        return self.is_android and self.is_chrome and not self.in_app_browser


def evaluate_rules(user_agent: str) -> Dict[str, bool]:
    flags: Dict[str, bool] = {}
    for rule in SIGNATURE_RULES:
        flags[rule.flag] = rule.matches(user_agent, flags)
    return flags


def classify_environment(user_agent: Optional[str]) -> CapabilityVector:
    """
    Classify a user-agent string.

    Unknown or empty signatures give the "other platform, no AR" vector.
    """
    flags = evaluate_rules(user_agent or "")

    if flags["ios_token"]:
        platform = Platform.IOS
    elif flags["android_token"]:
        platform = Platform.ANDROID
    else:
        platform = Platform.OTHER

    return CapabilityVector(
        platform=platform,
        is_safari=flags["is_safari"],
        is_chrome=flags["is_chrome"],
        in_app_browser=flags["in_app_browser"],
    )
