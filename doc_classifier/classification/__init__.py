from doc_classifier.classification.base import BaseClassificationClient
from doc_classifier.classification.factory import ClassifierFactory
from doc_classifier.classification.http_client_adapter import HttpClassificationClient
from doc_classifier.classification.reconciler import ResponseReconciler

__all__ = [
    "BaseClassificationClient",
    "ClassifierFactory",
    "HttpClassificationClient",
    "ResponseReconciler",
]
