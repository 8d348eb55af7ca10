"""Measure detection quality against reviewer decisions."""

from __future__ import annotations

import logging
from typing import List
from uuid import uuid4

import numpy as np
from sklearn.metrics import accuracy_score, confusion_matrix, precision_score, recall_score, roc_auc_score

from txmonitor.models import ModelEvaluation, SystemMetric, TransactionRecord
from txmonitor.storage.base import TransactionStore

LOGGER = logging.getLogger(__name__)

# A rejected transaction is confirmed fraud; anything else the reviewer signed off is legitimate.
FRAUD_REVIEW_STATUS = "REJECTED"


def evaluate_transactions(transactions: List[TransactionRecord]) -> ModelEvaluation:
    """Compare pipeline decisions with review outcomes.

    A transaction counts as predicted fraud when the pipeline did not simply
    process it. ROC AUC is only defined when both classes are present.
    """
    if not transactions:
        raise ValueError("No reviewed transactions available for evaluation")

    y_true = np.array([int(record.review_status == FRAUD_REVIEW_STATUS) for record in transactions])
    y_pred = np.array([int(record.status != "PROCESSED") for record in transactions])
    y_score = np.array([record.ml_score for record in transactions], dtype=float)

    tn, fp, _fn, _tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()
    negatives = tn + fp

    roc_auc = None
    if len(np.unique(y_true)) == 2:
        roc_auc = float(roc_auc_score(y_true, y_score))

    return ModelEvaluation(
        sample_size=len(transactions),
        accuracy=float(accuracy_score(y_true, y_pred)),
        precision=float(precision_score(y_true, y_pred, zero_division=0)),
        recall=float(recall_score(y_true, y_pred, zero_division=0)),
        false_positive_rate=float(fp / negatives) if negatives else 0.0,
        roc_auc=roc_auc,
    )


def run_model_evaluation(store: TransactionStore) -> ModelEvaluation:
    """Evaluate reviewed transactions and record the results as system metrics."""
    evaluation = evaluate_transactions(store.list_reviewed_transactions())

    values = {
        "model_accuracy": evaluation.accuracy,
        "precision": evaluation.precision,
        "recall": evaluation.recall,
        "false_positive_rate": evaluation.false_positive_rate,
    }
    if evaluation.roc_auc is not None:
        values["roc_auc"] = evaluation.roc_auc

    for name, value in values.items():
        store.create_system_metric(SystemMetric(id=str(uuid4()), metric_name=name, metric_value=round(value, 4)))

    LOGGER.info(
        "Model evaluation over %d reviewed transactions: accuracy=%.3f precision=%.3f recall=%.3f",
        evaluation.sample_size,
        evaluation.accuracy,
        evaluation.precision,
        evaluation.recall,
    )
    return evaluation


__all__ = ["evaluate_transactions", "run_model_evaluation"]
