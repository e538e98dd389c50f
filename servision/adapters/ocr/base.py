from abc import ABC, abstractmethod

from servision.orchestrator.contracts import RecognitionConfig


class TextRecognitionService(ABC):
    @abstractmethod
    def recognize_lines(self, image, config: RecognitionConfig) -> list[str]:
        """Recognize text in a conditioned image (numpy array).

        Returns one string per detected text line, in the order the engine
        reports them. Raises RecognitionError on failure; an image without
        text returns [].
        """
        ...
