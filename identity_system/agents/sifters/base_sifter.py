"""Base class for sifter agents that turn evidence into claims and findings.

Sifters are the analytical arm of the identity system:
- ClaimSynthesisAgent: EvidenceItem -> new or reinforced Claim
- ClaimAuditor: stored claims -> ClaimIssue findings

All sifters inherit from this base class and implement the sift() method.
"""

from abc import abstractmethod

from identity_system.agents.base_agent import BaseAgent


class BaseSifter(BaseAgent):
    """
    Abstract base for sifter agents.

    The process() method is implemented to route to the abstract sift()
    method, which subclasses must implement.

    Attributes:
        processed_count: Number of successfully processed requests.
        error_count: Number of failed processing attempts.
    """

    def __init__(self, name: str, description: str = ""):
        super().__init__(name=name, description=description)
        self.processed_count: int = 0
        self.error_count: int = 0

    @abstractmethod
    async def sift(self, content: dict) -> list[dict]:
        """
        Process content and produce structured output.

        Args:
            content: Request dict. Expected keys vary by sifter type:
                - ClaimSynthesisAgent: 'user_id', 'evidence' (list of EvidenceItem dicts)
                - ClaimAuditor: 'user_id', optional 'document_id'

        Returns:
            List of output items as dicts:
                - ClaimSynthesisAgent: ClaimUpdate dicts
                - ClaimAuditor: ClaimIssue dicts
        """
        pass

    async def process(self, input_data: dict) -> dict:
        """
        BaseAgent.process implementation routing to sift().

        Args:
            input_data: Dict with 'content' key containing data to process.

        Returns:
            Dict with:
                - success: bool
                - results: list of produced items
                - count: number of items produced
                - error: error message if failed
        """
        try:
            results = await self.sift(input_data.get("content", {}))
            self.processed_count += 1
            return {
                "success": True,
                "results": results,
                "count": len(results),
            }
        except Exception as e:
            self.error_count += 1
            self.logger.error(f"Sift failed: {e}", exc_info=True)
            return {
                "success": False,
                "error": str(e),
                "results": [],
            }

    def get_capabilities(self) -> list[str]:
        return ["sifting", "analysis"]

    def get_stats(self) -> dict:
        """Processing statistics: processed_count, error_count and error_rate."""
        total = self.processed_count + self.error_count
        error_rate = self.error_count / total if total > 0 else 0.0
        return {
            "processed_count": self.processed_count,
            "error_count": self.error_count,
            "error_rate": error_rate,
        }
