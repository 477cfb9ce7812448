"""
Sentence detection (Stage 1).

For each document:
- Run spaCy sentence segmentation (doc.sents)
- Optionally split again at line breaks
"""

from annot_pipeline.stage_01_sentences.sentence_detector import SentenceDetector, detect_sentences

__all__ = ["SentenceDetector", "detect_sentences"]
