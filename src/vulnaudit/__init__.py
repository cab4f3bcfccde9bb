"""vulnaudit — static security audit for source trees and IAM policies."""

__version__ = "0.1.0"
